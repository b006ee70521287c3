from rest_framework import serializers

class SubscriptionKeysSerializer(serializers.Serializer):
    p256dh = serializers.CharField()
    auth = serializers.CharField()


class SubscriptionSerializer(serializers.Serializer):
    endpoint = serializers.URLField(max_length=2048)
    expirationTime = serializers.IntegerField(required=False, allow_null=True)
    keys = SubscriptionKeysSerializer()


class NotifySerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    message = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    url = serializers.CharField(required=False, allow_blank=True, max_length=2048)

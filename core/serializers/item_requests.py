from rest_framework import serializers

class ApproveSerializer(serializers.Serializer):
    approval_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)


class RejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=2000)

from django.db import migrations, models

import core.models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.CharField(default=core.models._new_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('collection', models.CharField(db_index=True, max_length=64)),
                ('fields', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'indexes': [models.Index(fields=['collection', 'created_at'], name='doc_collection_created_idx')],
            },
        ),
    ]

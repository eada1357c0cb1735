import uuid
from tortoise import fields, models

class StoredObject(models.Model):
    """
    Uploaded blob (one audio file or one chunk of a longer recording).
    - id: the storage reference handed back to the client after upload
    - path: location of the bytes under settings.storage_dir
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    owner = fields.ForeignKeyField("models.User", related_name="stored_objects", on_delete=fields.CASCADE)
    content_type = fields.CharField(max_length=64, default="audio/m4a")
    size_bytes = fields.BigIntField()
    path = fields.CharField(max_length=1024)
    upload_token_id = fields.CharField(max_length=32, null=True, unique=True)  # jti of the upload URL, one upload per URL
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "stored_objects"

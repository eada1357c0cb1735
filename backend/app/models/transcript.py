from tortoise import fields, models

class TranscriptTurn(models.Model):
    id = fields.IntField(pk=True)
    conversation = fields.ForeignKeyField("models.Conversation", related_name="turns", on_delete=fields.CASCADE)

    seq = fields.IntField()  # 1-based append order across all chunks

    # Resolved platform identity (S1 -> initiator, S2 -> participant)
    user = fields.ForeignKeyField("models.User", related_name="transcript_turns", on_delete=fields.CASCADE)
    text = fields.TextField()

    class Meta:
        table = "transcript_turns"
        unique_together = (("conversation", "seq"),)

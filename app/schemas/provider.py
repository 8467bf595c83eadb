"""Provider connection settings handed to collectors by their caller."""

from pydantic import BaseModel, Field, SecretStr


class AwsCredentials(BaseModel):
    """Explicit access key pair. When absent, boto3's default credential chain is used."""

    access_key_id: str = Field(..., min_length=1)
    secret_access_key: SecretStr


class AwsConfig(BaseModel):
    """Opaque configuration for building provider clients; never read from the environment here."""

    region: str = Field(default="us-east-1", min_length=1)
    credentials: AwsCredentials | None = None
    max_attempts: int = Field(default=3, ge=1, le=10)

import os
import boto3

class Settings:
    def __init__(self):
        ssm_region = os.getenv("SSM_REGION")
        ssm = boto3.client('ssm', region_name=ssm_region) if ssm_region else None

        self.DATABASE_URL = self.get_parameter(ssm, "DATABASE_URL", "sqlite:///app.db")
        self.SECRET_KEY = self.get_parameter(ssm, "SECRET_KEY", "dev-secret-key")
        self.JWT_ALGORITHM = self.get_parameter(ssm, "JWT_ALGORITHM", "HS256")
        self.SPACES_ACCESS_KEY_ID = self.get_parameter(ssm, "SPACES_ACCESS_KEY_ID")
        self.SPACES_SECRET_ACCESS_KEY = self.get_parameter(ssm, "SPACES_SECRET_ACCESS_KEY")
        self.SPACES_ENDPOINT = self.get_parameter(ssm, "SPACES_ENDPOINT")
        self.SPACES_BUCKET = self.get_parameter(ssm, "SPACES_BUCKET", "event-photos")
        self.PUBLIC_BASE_URL = self.get_parameter(ssm, "PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")

        self.CAPTURE_JPEG_QUALITY = float(self.get_parameter(ssm, "CAPTURE_JPEG_QUALITY", "0.8"))
        self.CAPTURE_RATE_LIMIT = self.get_parameter(ssm, "CAPTURE_RATE_LIMIT", "60/minute")

        self.CELERY_BROKER_URL = self.get_parameter(ssm, "CELERY_BROKER_URL", "redis://localhost:6379/0")
        self.CELERY_RESULT_BACKEND = self.get_parameter(ssm, "CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
        self.ORPHAN_CLEANUP_SCHEDULE = self.get_parameter(ssm, "ORPHAN_CLEANUP_SCHEDULE", "false").lower() == "true"
        # Unreferenced objects younger than this may still be waiting for their record
        self.ORPHAN_MIN_AGE_MINUTES = int(self.get_parameter(ssm, "ORPHAN_MIN_AGE_MINUTES", "60"))

        self.CORS_ORIGINS = [
            origin.strip() for origin in self.get_parameter(ssm, "CORS_ORIGINS", "*").split(",") if origin.strip()
        ]

    def get_parameter(self, ssm, name, default=None):
        # Environment wins so local runs and tests never touch Parameter Store
        value = os.getenv(name)
        if value is not None:
            return value
        if ssm is None:
            return default
        try:
            return ssm.get_parameter(Name=name, WithDecryption=True)['Parameter']['Value']
        except ssm.exceptions.ParameterNotFound:
            return default

    @property
    def public_storage_url(self) -> str:
        endpoint = (self.SPACES_ENDPOINT or "").rstrip("/")
        return f"{endpoint}/{self.SPACES_BUCKET}"

settings = Settings()

import logging
from typing import List, Optional

from pydantic_settings import BaseSettings

from models.s3_models import S3Config

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    s3_endpoint: Optional[str] = None
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_region: str = "us-east-1"
    s3_addressing_style: str = "path"
    deploy_bucket: str = ""
    deploy_prefix: str = ""
    deploy_file_pattern: str = "index.html"
    deploy_acl: Optional[str] = None
    deploy_allow_overwrite: bool = False
    deploy_make_public: bool = False
    deploy_gzipped_file_paths: List[str] = []
    deploy_root: str = "."
    log_level: str = "INFO"

    class Config:
        env_file = ".env"

    def to_s3_config(self) -> S3Config:
        return S3Config(
            endpoint_url=self.s3_endpoint,
            access_key=self.s3_access_key,
            secret_key=self.s3_secret_key,
            region=self.s3_region,
            addressing_style=self.s3_addressing_style,
        )


# noinspection PyArgumentList
settings = Settings()

logger.debug("=== Settings Debug ===")
logger.debug(f"S3 Endpoint: {settings.s3_endpoint}")
logger.debug(f"S3 Region: {settings.s3_region}")
logger.debug(f"Deploy Bucket: {settings.deploy_bucket}")
logger.debug(f"Deploy Prefix: {settings.deploy_prefix}")
logger.debug(f"Deploy File Pattern: {settings.deploy_file_pattern}")
logger.debug(f"Deploy Root: {settings.deploy_root}")
logger.debug(f"Log Level: {settings.log_level}")
logger.debug("=== End Settings Debug ===")

"""
Upload deployment packages to Tencent COS.

Prerequisites:
- pip install cos-python-sdk-v5
- Set env vars (or .secrets/tencent.env): TENCENT_SECRET_ID, TENCENT_SECRET_KEY,
  COS_BUCKET, optionally COS_REGION and COS_PREFIX (e.g., "scf-bench/")

SCF reads the package straight from the bucket, so the bucket must be in
the function's region or COS_REGION must be passed along with the code.
"""
import logging

from qcloud_cos import CosConfig, CosS3Client
from qcloud_cos.cos_exception import CosClientError, CosServiceError

from bench_errors import StorageError

logger = logging.getLogger(__name__)


def make_cos_client(config) -> CosS3Client:
    cos_config = CosConfig(
        Region=config.cos_region or config.region,
        SecretId=config.secret_id,
        SecretKey=config.secret_key,
    )
    return CosS3Client(cos_config)


def package_key(config, function_name: str) -> str:
    return f'{config.cos_prefix}{function_name}Bundle.zip'


class CosUploader:

    def __init__(self, config, client=None):
        self.config = config
        self.client = client if client is not None else make_cos_client(config)

    def upload(self, bucket: str, key: str, body: bytes) -> dict:
        try:
            rsp = self.client.put_object(
                Bucket=bucket,
                Body=body,
                Key=key,
                ContentType='application/zip',
            )
        except CosServiceError as e:
            raise StorageError(
                f'Upload of {key} to {bucket} failed: {e.get_error_code()} {e.get_error_msg()}'
            ) from e
        except CosClientError as e:
            raise StorageError(f'Upload of {key} to {bucket} failed: {e}') from e
        logger.debug('Uploaded %s (%d bytes) to %s', key, len(body), bucket)
        return {'bucket': bucket, 'key': key, 'etag': (rsp or {}).get('ETag')}

    def upload_package(self, function_name: str, body: bytes) -> dict:
        self.config.require_cos()
        return self.upload(self.config.cos_bucket, package_key(self.config, function_name), body)

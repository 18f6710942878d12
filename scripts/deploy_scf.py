"""
Create, update, list and invoke Tencent Cloud SCF functions.

Prerequisites:
- pip install tencentcloud-sdk-python
- Set env vars (or .secrets/tencent.env):
  TENCENT_SECRET_ID, TENCENT_SECRET_KEY, TENCENT_REGION (e.g., ap-shanghai)
  SCF_NAMESPACE (default: default)

Code can be passed inline (base64 zip) or as a COS object. SCF creates and
updates functions asynchronously: wait_until_active() must succeed before
the function can be invoked.
"""
import base64
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from tencentcloud.common import credential
from tencentcloud.common.exception.tencent_cloud_sdk_exception import TencentCloudSDKException
from tencentcloud.common.profile.client_profile import ClientProfile
from tencentcloud.common.profile.http_profile import HttpProfile
from tencentcloud.scf.v20180416 import models, scf_client

from bench_errors import NotFoundError, RemoteServiceError

logger = logging.getLogger(__name__)

FAILED_STATUSES = {'CreateFailed', 'UpdateFailed', 'PublishFailed', 'DeleteFailed'}


@dataclass(frozen=True)
class CodeRef:
    zip_file: Optional[str] = None
    cos_bucket: Optional[str] = None
    cos_key: Optional[str] = None
    cos_region: Optional[str] = None

    @classmethod
    def inline(cls, bundle: bytes) -> 'CodeRef':
        return cls(zip_file=base64.b64encode(bundle).decode('utf-8'))

    @classmethod
    def from_cos(cls, bucket: str, key: str, region: Optional[str] = None) -> 'CodeRef':
        return cls(cos_bucket=bucket, cos_key=key, cos_region=region)

    @property
    def via_cos(self) -> bool:
        return self.cos_bucket is not None


@dataclass(frozen=True)
class FunctionInfo:
    name: str
    namespace: str = 'default'
    runtime: Optional[str] = None
    status: Optional[str] = None
    request_id: Optional[str] = None


def make_scf_client(config) -> scf_client.ScfClient:
    cred = credential.Credential(config.secret_id, config.secret_key)
    httpProfile = HttpProfile()
    clientProfile = ClientProfile(httpProfile=httpProfile)
    return scf_client.ScfClient(cred, config.region, clientProfile)


def _cos_bucket_name(bucket: str) -> str:
    # SCF wants the bucket name without the -appid suffix COS uses
    name, sep, appid = bucket.rpartition('-')
    return name if sep and appid.isdigit() else bucket


def _remote_error(action: str, e: TencentCloudSDKException) -> RemoteServiceError:
    code = e.get_code() or ''
    msg = f'{action} failed: [{code}] {e.get_message()}'
    cls = NotFoundError if code.startswith('ResourceNotFound') else RemoteServiceError
    return cls(msg, code=code, request_id=e.get_request_id())


class ScfService:

    def __init__(self, config, client=None):
        self.config = config
        self.client = client if client is not None else make_scf_client(config)

    def _call(self, action: str, req):
        try:
            return getattr(self.client, action)(req)
        except TencentCloudSDKException as e:
            raise _remote_error(action, e) from e

    def create_function(self, name: str, code: CodeRef) -> FunctionInfo:
        cfg = self.config
        req = models.CreateFunctionRequest()
        req.FunctionName = name
        req.Namespace = cfg.namespace
        req.Runtime = cfg.runtime
        req.Handler = cfg.handler
        req.Code = models.Code()
        if code.via_cos:
            req.Code.CosBucketName = _cos_bucket_name(code.cos_bucket)
            req.Code.CosObjectName = '/' + code.cos_key.lstrip('/')
            req.Code.CosBucketRegion = code.cos_region
        else:
            req.Code.ZipFile = code.zip_file
        req.Description = 'SCF deployment benchmark'
        req.Timeout = cfg.timeout
        req.MemorySize = cfg.memory_size
        if cfg.role:
            req.Role = cfg.role
        rsp = self._call('CreateFunction', req)
        return FunctionInfo(name=name, namespace=cfg.namespace, runtime=cfg.runtime,
                            request_id=rsp.RequestId)

    def update_function_code(self, name: str, code: CodeRef) -> FunctionInfo:
        cfg = self.config
        req = models.UpdateFunctionCodeRequest()
        req.FunctionName = name
        req.Namespace = cfg.namespace
        req.Handler = cfg.handler
        if code.via_cos:
            req.CosBucketName = _cos_bucket_name(code.cos_bucket)
            req.CosObjectName = '/' + code.cos_key.lstrip('/')
            req.CosBucketRegion = code.cos_region
        else:
            req.ZipFile = code.zip_file
        req.InstallDependency = 'FALSE'
        rsp = self._call('UpdateFunctionCode', req)
        return FunctionInfo(name=name, namespace=cfg.namespace, request_id=rsp.RequestId)

    def list_functions(self, limit: int = 20) -> List[FunctionInfo]:
        req = models.ListFunctionsRequest()
        req.Namespace = self.config.namespace
        req.Limit = limit
        rsp = self._call('ListFunctions', req)
        return [
            FunctionInfo(
                name=f.FunctionName,
                namespace=f.Namespace or self.config.namespace,
                runtime=f.Runtime,
                status=f.Status,
            )
            for f in (rsp.Functions or [])
        ]

    def get_existing_function(self) -> FunctionInfo:
        # any one function will do as the update target
        functions = self.list_functions(1)
        if not functions:
            raise NotFoundError('There are no functions to update.')
        return functions[0]

    def get_status(self, name: str) -> str:
        req = models.GetFunctionRequest()
        req.FunctionName = name
        req.Namespace = self.config.namespace
        rsp = self._call('GetFunction', req)
        return rsp.Status

    def wait_until_active(self, name: str, timeout: float = 60.0, interval: float = 1.0,
                          sleep=time.sleep, clock=time.monotonic) -> str:
        deadline = clock() + timeout
        while True:
            status = self.get_status(name)
            if status == 'Active':
                return status
            if status in FAILED_STATUSES:
                raise RemoteServiceError(f'Function {name} ended in status {status}', code=status)
            if clock() >= deadline:
                raise RemoteServiceError(f'Function {name} not active after {timeout}s (status {status})')
            logger.debug('Function %s is %s, waiting', name, status)
            sleep(interval)

    def invoke(self, name: str) -> str:
        req = models.InvokeRequest()
        req.FunctionName = name
        req.Namespace = self.config.namespace
        req.InvocationType = 'RequestResponse'
        rsp = self._call('Invoke', req)
        result = rsp.Result
        if result.InvokeResult not in (None, 0):
            raise RemoteServiceError(
                f'Invocation of {name} failed: {result.ErrMsg}',
                code=str(result.InvokeResult),
                request_id=result.FunctionRequestId,
            )
        return result.RetMsg

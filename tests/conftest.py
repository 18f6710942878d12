"""Shared fixtures: a simulated clock and fake SCF/COS clients."""

from pathlib import Path
from types import SimpleNamespace

import pytest

from bench_config import CloudConfig


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeScfClient:
    """Records requests and answers like ScfClient would."""

    def __init__(self, functions=None, statuses=None, invoke_result=0) -> None:
        self.requests = []
        self.functions = list(functions or [])
        self.statuses = list(statuses or ['Active'])
        self.invoke_result = invoke_result
        self.errors = {}

    def _record(self, action, req):
        self.requests.append((action, req))
        if action in self.errors:
            raise self.errors[action]

    def CreateFunction(self, req):
        self._record('CreateFunction', req)
        self.functions.insert(0, req.FunctionName)
        return SimpleNamespace(RequestId='req-create')

    def UpdateFunctionCode(self, req):
        self._record('UpdateFunctionCode', req)
        return SimpleNamespace(RequestId='req-update')

    def ListFunctions(self, req):
        self._record('ListFunctions', req)
        names = self.functions[: req.Limit]
        return SimpleNamespace(
            Functions=[
                SimpleNamespace(FunctionName=n, Namespace=req.Namespace, Runtime='Python3.9', Status='Active')
                for n in names
            ],
            TotalCount=len(self.functions),
        )

    def GetFunction(self, req):
        self._record('GetFunction', req)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return SimpleNamespace(Status=status, FunctionName=req.FunctionName)

    def Invoke(self, req):
        self._record('Invoke', req)
        return SimpleNamespace(
            Result=SimpleNamespace(
                RetMsg='{"message": "Hello World"}',
                ErrMsg='' if self.invoke_result == 0 else 'boom',
                InvokeResult=self.invoke_result,
                FunctionRequestId='fn-req',
            )
        )

    def actions(self):
        return [a for a, _ in self.requests]


class FakeCosClient:
    def __init__(self) -> None:
        self.objects = {}
        self.error = None

    def put_object(self, Bucket, Body, Key, **kwargs):
        if self.error is not None:
            raise self.error
        self.objects[(Bucket, Key)] = Body
        return {'ETag': '"etag"'}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def functions_dir(tmp_path: Path) -> Path:
    root = tmp_path / 'functions'
    for size in ('small', 'medium', 'large'):
        d = root / size
        d.mkdir(parents=True)
        (d / 'index.py').write_text('def main_handler(event, context):\n    return "ok"\n')
    (root / 'large' / 'data.txt').write_text('x' * 4096)
    return root


@pytest.fixture
def config(tmp_path: Path, functions_dir: Path) -> CloudConfig:
    return CloudConfig(
        secret_id='AKIDtest',
        secret_key='secret',
        region='ap-guangzhou',
        cos_bucket='packages-1250000000',
        cos_region='ap-guangzhou',
        cos_prefix='bench/',
        functions_dir=functions_dir,
        dist_dir=tmp_path / 'dist',
    )


@pytest.fixture
def scf_client() -> FakeScfClient:
    return FakeScfClient()


@pytest.fixture
def cos_client() -> FakeCosClient:
    return FakeCosClient()

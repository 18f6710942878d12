"""Tests for the timed create/update/invoke flows (fake SCF and COS clients)."""

import logging
import zipfile

import pytest

import run_bench
from bench_config import CloudConfig, RunOptions
from bench_errors import ConfigError, NotFoundError, PackagingError, RemoteServiceError
from deploy_scf import ScfService
from upload_cos import CosUploader


@pytest.fixture
def scf(config, scf_client) -> ScfService:
    return ScfService(config, client=scf_client)


@pytest.fixture
def cos(config, cos_client) -> CosUploader:
    return CosUploader(config, client=cos_client)


@pytest.fixture(autouse=True)
def fixed_name(monkeypatch) -> str:
    monkeypatch.setattr(run_bench, 'new_function_name', lambda: 'bench-fixed')
    return 'bench-fixed'


def test_new_function_name_is_valid_for_scf(monkeypatch) -> None:
    monkeypatch.undo()
    name = run_bench.new_function_name()
    assert name.startswith('bench-')
    assert len(name) == 16


class TestCreateFlow:
    """Test building, uploading and creating a new function."""

    def test_create_inline(self, config, scf, scf_client, caplog) -> None:
        options = RunOptions('create', 'locally', 'small')

        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            info = run_bench.create_flow(config, options, scf)

        assert info.name == 'bench-fixed'
        assert scf_client.actions() == ['CreateFunction']
        labels = [m.split(' -- ')[0] for m in caplog.messages]
        assert labels == [
            'Created deployment package',
            'Read bundle from file system',
            'Created function: bench-fixed',
        ]
        assert zipfile.is_zipfile(config.dist_dir / 'bench-fixed.zip')

    def test_create_via_cos(self, config, scf, scf_client, cos, cos_client, caplog) -> None:
        options = RunOptions('create', 'cos', 'large')

        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            run_bench.create_flow(config, options, scf, cos)

        assert ('packages-1250000000', 'bench/bench-fixedBundle.zip') in cos_client.objects
        _, req = scf_client.requests[-1]
        assert req.Code.CosObjectName == '/bench/bench-fixedBundle.zip'
        assert req.Code.CosBucketRegion == 'ap-guangzhou'
        assert 'Uploaded package to COS' in [m.split(' -- ')[0] for m in caplog.messages]

    def test_missing_size_directory(self, config, scf, scf_client, tmp_path) -> None:
        bad = CloudConfig(secret_id='a', secret_key='b', functions_dir=tmp_path / 'nothing',
                          dist_dir=tmp_path / 'dist')

        with pytest.raises(PackagingError):
            run_bench.create_flow(bad, RunOptions('create', 'locally', 'small'), scf)
        assert scf_client.requests == []


class TestUpdateFlow:
    """Test updating the code of an existing function."""

    def test_update_inline(self, config, scf, scf_client, caplog) -> None:
        target = scf.create_function('old-fn', run_bench.CodeRef.inline(b'x'))

        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            info = run_bench.update_flow(config, RunOptions('update', 'locally', 'medium'), scf, target)

        assert info.name == 'old-fn'
        _, req = scf_client.requests[-1]
        assert req.FunctionName == 'old-fn'
        assert caplog.messages[-1].startswith('Updated function: old-fn -- ')


class TestInvokeInSeries:
    """Test the repeated invocation loop."""

    def test_invokes_n_times_and_returns_payloads(self, scf, scf_client, caplog) -> None:
        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            payloads = run_bench.invoke_in_series(scf, 'fn', 3)

        assert len(payloads) == 3
        assert scf_client.actions() == ['Invoke'] * 3
        assert [m.split(' -- ')[0] for m in caplog.messages] == ['Invocation 0', 'Invocation 1', 'Invocation 2']

    def test_failure_stops_the_loop(self, scf, scf_client) -> None:
        scf_client.invoke_result = 1
        with pytest.raises(RemoteServiceError):
            run_bench.invoke_in_series(scf, 'fn', 3)
        assert scf_client.actions() == ['Invoke']


class TestRunBenchmark:
    """Test the complete run."""

    def test_create_and_invoke(self, config, scf, scf_client, caplog) -> None:
        options = RunOptions('create', 'locally', 'small', invoke=True, num_invocations=2)

        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            total = run_bench.run_benchmark(config, options, scf=scf)

        assert total >= 0
        assert scf_client.actions() == ['CreateFunction', 'GetFunction', 'Invoke', 'Invoke']
        labels = [m.split(' -- ')[0] for m in caplog.messages]
        assert labels[-1] == 'Total time'
        assert 'Total create time' in labels
        assert 'Function active' in labels
        assert labels.index('Total create time') < labels.index('Function active') < labels.index('Invocation 0')

    def test_update_uses_existing_function(self, config, scf, scf_client, caplog) -> None:
        scf_client.functions = ['existing-fn']
        options = RunOptions('update', 'locally', 'medium')

        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            run_bench.run_benchmark(config, options, scf=scf)

        assert scf_client.actions() == ['ListFunctions', 'GetFunction', 'UpdateFunctionCode']
        assert 'Total update time' in [m.split(' -- ')[0] for m in caplog.messages]

    def test_update_without_functions(self, config, scf, scf_client) -> None:
        with pytest.raises(NotFoundError):
            run_bench.run_benchmark(config, RunOptions('update', 'locally', 'small'), scf=scf)
        assert scf_client.actions() == ['ListFunctions']

    def test_cos_requires_bucket(self, tmp_path, functions_dir, scf, scf_client) -> None:
        cfg = CloudConfig(secret_id='a', secret_key='b', functions_dir=functions_dir)

        with pytest.raises(ConfigError):
            run_bench.run_benchmark(cfg, RunOptions('create', 'cos', 'small'), scf=scf)
        assert scf_client.requests == []

    def test_remote_error_propagates(self, config, scf, scf_client) -> None:
        error = RemoteServiceError('timeout')

        def fail(req):
            raise error

        scf_client.CreateFunction = fail
        with pytest.raises(RemoteServiceError) as excinfo:
            run_bench.run_benchmark(config, RunOptions('create', 'locally', 'small'), scf=scf)
        assert excinfo.value is error

    def test_update_waits_for_pending_change(self, config, scf, scf_client, caplog) -> None:
        """An update target still Updating is polled until Active first."""
        scf_client.functions = ['busy-fn']
        scf_client.statuses = ['Updating', 'Updating', 'Active']
        scf.wait_until_active = _no_sleep(scf)

        with caplog.at_level(logging.INFO, logger='checkpoint_timer'):
            run_bench.run_benchmark(config, RunOptions('update', 'locally', 'small'), scf=scf)

        assert scf_client.actions() == [
            'ListFunctions', 'GetFunction', 'GetFunction', 'GetFunction', 'UpdateFunctionCode']
        # polling happens before, and outside, the timed update
        labels = [m.split(' -- ')[0] for m in caplog.messages]
        assert labels[0] == 'Created deployment package'

    def test_update_target_failed(self, config, scf, scf_client) -> None:
        scf_client.functions = ['broken-fn']
        scf_client.statuses = ['UpdateFailed']

        with pytest.raises(RemoteServiceError, match='UpdateFailed'):
            run_bench.run_benchmark(config, RunOptions('update', 'locally', 'small'), scf=scf)
        assert 'UpdateFunctionCode' not in scf_client.actions()


def _no_sleep(scf):
    wait = scf.wait_until_active

    def wait_until_active(name, **kwargs):
        return wait(name, sleep=lambda s: None, **kwargs)

    return wait_until_active

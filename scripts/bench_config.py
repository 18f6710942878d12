"""
Configuration for the SCF deployment benchmark.

Two pieces:
- the option schema (package sizes, hosting options, actions), the single
  source for CLI choices, RunOptions validation and the benchmark matrix;
- CloudConfig, the credentials and SCF/COS settings, read from environment
  variables with `.secrets/tencent.env` as fallback:

  TENCENT_SECRET_ID, TENCENT_SECRET_KEY   (required)
  TENCENT_REGION                          (default: ap-shanghai)
  SCF_NAMESPACE, SCF_RUNTIME, SCF_HANDLER, SCF_ROLE,
  SCF_MEMORY_SIZE, SCF_TIMEOUT
  COS_BUCKET (required for --hosted cos), COS_REGION, COS_PREFIX
  BENCH_FUNCTIONS_DIR, BENCH_DIST_DIR

The config object is passed explicitly to whatever needs it.
"""
import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

import cloud_secrets
from bench_errors import ConfigError

BASE = Path(__file__).resolve().parent.parent
FUNCTIONS_DIR = BASE / 'functions'
DIST_DIR = BASE / 'dist'

TRUE_VALUES = {'true', 'yes', '1', 'on'}
FALSE_VALUES = {'false', 'no', '0', 'off'}


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in TRUE_VALUES:
            return True
        if v in FALSE_VALUES:
            return False
    raise ConfigError(f'Expected a boolean, got {value!r}')


class _Choice(str, enum.Enum):

    @classmethod
    def choices(cls) -> List[str]:
        return [m.value for m in cls]

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = cls._aliases().get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ConfigError(
                f'Invalid {cls.__name__} {value!r}, expected one of: {", ".join(cls.choices())}'
            ) from None

    @classmethod
    def _aliases(cls):
        return {}

    def __str__(self):
        return self.value


class PackageSize(_Choice):
    SMALL = 'small'
    MEDIUM = 'medium'
    LARGE = 'large'


class HostedOption(_Choice):
    LOCALLY = 'locally'
    COS = 'cos'

    @classmethod
    def _aliases(cls):
        return {'s3': 'cos'}


class Action(_Choice):
    CREATE = 'create'
    UPDATE = 'update'


@dataclass(frozen=True)
class RunOptions:
    action: Action
    hosted: HostedOption
    size: PackageSize
    invoke: bool = False
    num_invocations: int = 1

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'action', Action.parse(self.action))
        object.__setattr__(self, 'hosted', HostedOption.parse(self.hosted))
        object.__setattr__(self, 'size', PackageSize.parse(self.size))
        object.__setattr__(self, 'invoke', parse_bool(self.invoke))
        if isinstance(self.num_invocations, bool) or not isinstance(self.num_invocations, int):
            raise ConfigError(f'num_invocations must be an integer, got {self.num_invocations!r}')
        if self.num_invocations < 1:
            raise ConfigError(f'num_invocations must be >= 1, got {self.num_invocations}')

    @property
    def via_cos(self) -> bool:
        return self.hosted is HostedOption.COS


def _int(cfg, key, default):
    raw = cfg.get(key)
    if raw is None or str(raw).strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f'{key} must be an integer, got {raw!r}') from None


@dataclass(frozen=True)
class CloudConfig:
    secret_id: str
    secret_key: str
    region: str = 'ap-shanghai'
    namespace: str = 'default'
    runtime: str = 'Python3.9'
    handler: str = 'index.main_handler'
    role: Optional[str] = None
    memory_size: int = 128
    timeout: int = 10
    cos_bucket: Optional[str] = None
    cos_region: Optional[str] = None
    cos_prefix: str = ''
    functions_dir: Path = FUNCTIONS_DIR
    dist_dir: Path = DIST_DIR

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, secrets_file: Optional[Path] = None) -> 'CloudConfig':
        cfg = cloud_secrets.merged_environ(os.environ if environ is None else environ, secrets_file)
        missing = [k for k in ('TENCENT_SECRET_ID', 'TENCENT_SECRET_KEY') if not cfg.get(k)]
        if missing:
            raise ConfigError('Missing env: ' + '/'.join(missing))

        region = cfg.get('TENCENT_REGION') or 'ap-shanghai'
        prefix = (cfg.get('COS_PREFIX') or '').strip()
        if prefix and not prefix.endswith('/'):
            prefix = prefix + '/'
        return cls(
            secret_id=cfg['TENCENT_SECRET_ID'],
            secret_key=cfg['TENCENT_SECRET_KEY'],
            region=region,
            namespace=cfg.get('SCF_NAMESPACE') or 'default',
            runtime=cfg.get('SCF_RUNTIME') or 'Python3.9',
            handler=cfg.get('SCF_HANDLER') or 'index.main_handler',
            role=cfg.get('SCF_ROLE') or None,
            memory_size=_int(cfg, 'SCF_MEMORY_SIZE', 128),
            timeout=_int(cfg, 'SCF_TIMEOUT', 10),
            cos_bucket=cfg.get('COS_BUCKET') or None,
            cos_region=cfg.get('COS_REGION') or region,
            cos_prefix=prefix,
            functions_dir=Path(cfg.get('BENCH_FUNCTIONS_DIR') or FUNCTIONS_DIR),
            dist_dir=Path(cfg.get('BENCH_DIST_DIR') or DIST_DIR),
        )

    def source_dir(self, size) -> Path:
        return Path(self.functions_dir) / PackageSize.parse(size).value

    def require_cos(self) -> None:
        if not self.cos_bucket:
            raise ConfigError('Missing env: COS_BUCKET (required for --hosted cos)')

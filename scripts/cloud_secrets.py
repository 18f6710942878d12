"""
Local Tencent Cloud secrets loader.

Reads `.secrets/tencent.env` (KEY=value lines) and returns a dict of values.
The result is merged under the real environment by bench_config; it is
never exported to `os.environ`.

Keys commonly stored there:
  - TENCENT_SECRET_ID, TENCENT_SECRET_KEY (required)
  - TENCENT_REGION
  - COS_BUCKET, COS_REGION, COS_PREFIX
  - SCF_NAMESPACE, SCF_ROLE
"""
from pathlib import Path
from typing import Dict, Mapping, Optional

BASE = Path(__file__).resolve().parent.parent
SECRETS_DIR = BASE / '.secrets'
ENV_FILE = SECRETS_DIR / 'tencent.env'


def _parse_env_line(line: str):
    line = line.strip()
    if not line or line.startswith('#'):
        return None, None
    if line.startswith('export '):
        line = line[len('export '):]
    if '=' not in line:
        return None, None
    key, val = line.split('=', 1)
    key = key.strip()
    val = val.strip().strip('"').strip("'")
    return key, val


def load_env_file(path: Optional[Path] = None) -> Dict[str, str]:
    path = ENV_FILE if path is None else Path(path)
    cfg: Dict[str, str] = {}
    if path.exists():
        with open(path, 'r', encoding='utf-8') as f:
            for raw in f:
                k, v = _parse_env_line(raw)
                if k:
                    cfg[k] = v
    return cfg


def merged_environ(environ: Mapping[str, str], path: Optional[Path] = None) -> Dict[str, str]:
    """File values first, then `environ` on top (the environment wins)."""
    cfg = load_env_file(path)
    cfg.update({k: v for k, v in environ.items() if v is not None})
    return cfg

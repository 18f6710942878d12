"""
Package an SCF function directory into a zip for upload.

Outputs dist/<id>.zip containing every file under functions/<size>/,
stored relative to that directory (so functions/medium/index.py becomes
index.py and the handler is index.main_handler).

Usage: python scripts/build_scf_zip.py --size medium [--id NAME]
"""
import argparse
import logging
import zipfile
from pathlib import Path

from bench_config import DIST_DIR, FUNCTIONS_DIR, PackageSize
from bench_errors import PackagingError

logger = logging.getLogger(__name__)

EXCLUDES = {'__pycache__', '.DS_Store'}


def _iter_files(source_dir: Path):
    for p in sorted(source_dir.rglob('*')):
        rel = p.relative_to(source_dir)
        if any(part in EXCLUDES for part in rel.parts) or p.suffix == '.pyc':
            continue
        if p.is_file():
            yield p, rel.as_posix()


def build_package(source_dir, dest_id, dist_dir=DIST_DIR) -> Path:
    source_dir = Path(source_dir)
    dist_dir = Path(dist_dir)
    if not source_dir.is_dir():
        raise PackagingError(f'Missing source directory: {source_dir}')

    out = dist_dir / f'{dest_id}.zip'
    try:
        dist_dir.mkdir(parents=True, exist_ok=True)
        count = 0
        with zipfile.ZipFile(out, 'w', compression=zipfile.ZIP_DEFLATED) as z:
            for src, arc in _iter_files(source_dir):
                z.write(src, arcname=arc)
                count += 1
    except (OSError, zipfile.BadZipFile) as e:
        if out.is_file():
            out.unlink()
        raise PackagingError(f'Could not build {out}: {e}') from e
    if count == 0:
        out.unlink()
        raise PackagingError(f'No files to package in {source_dir}')
    logger.debug('Packaged %d files from %s into %s', count, source_dir, out)
    return out


def main(argv=None):
    parser = argparse.ArgumentParser(description='Build an SCF deployment package')
    parser.add_argument('--size', choices=PackageSize.choices(), default=PackageSize.MEDIUM.value)
    parser.add_argument('--id', dest='dest_id', default='scf')
    parser.add_argument('--functions-dir', type=Path, default=FUNCTIONS_DIR)
    parser.add_argument('--dist-dir', type=Path, default=DIST_DIR)
    args = parser.parse_args(argv)
    out = build_package(args.functions_dir / args.size, args.dest_id, args.dist_dir)
    print('Built:', out)


if __name__ == '__main__':
    main()

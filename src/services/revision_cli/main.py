#!/usr/bin/env python3
"""
Upload, list and activate revisions of a deployed file from the command line.

Usage:
    revision-deploy list --bucket my-site
    revision-deploy upload dist/index.html --revision-key abc123 --bucket my-site
    revision-deploy activate abc123 --bucket my-site --make-public

Options that are not given fall back to the DEPLOY_* settings.
Exit codes: 0 ok, 1 revision refused, 2 usage, 3 storage or file error.
"""

import argparse
import logging
import sys
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from models.config.settings import Settings, settings
from models.infrastructure.s3_client import S3Client
from models.revision_errors import RevisionError
from models.s3_models import (
    ActivateRequest,
    ObjectMeta,
    RevisionListRequest,
    UploadRequest,
)
from services.revision_store import RevisionStore

logger = logging.getLogger(__name__)

EXIT_REVISION_ERROR = 1
EXIT_USAGE = 2
EXIT_STORAGE_ERROR = 3


def build_parser(config: Settings) -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--bucket", default=config.deploy_bucket)
    common.add_argument("--prefix", default=config.deploy_prefix)
    common.add_argument("--file-pattern", default=config.deploy_file_pattern)

    parser = argparse.ArgumentParser(prog="revision-deploy")
    parser.add_argument("--log-level", default=config.log_level)
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", parents=[common], help="List uploaded revisions")

    upload = commands.add_parser("upload", parents=[common], help="Upload a revision")
    upload.add_argument("file_path")
    upload.add_argument("--revision-key", required=True)
    upload.add_argument("--acl", default=config.deploy_acl)
    upload.add_argument(
        "--allow-overwrite",
        action="store_true",
        default=config.deploy_allow_overwrite,
    )
    upload.add_argument(
        "--gzip",
        dest="gzipped_file_paths",
        action="append",
        default=None,
        help=(
            "File pattern to store gzip encoded (repeatable, "
            "replaces DEPLOY_GZIPPED_FILE_PATHS)"
        ),
    )

    activate = commands.add_parser(
        "activate", parents=[common], help="Activate an uploaded revision"
    )
    activate.add_argument("revision_key")
    activate.add_argument(
        "--make-public", action="store_true", default=config.deploy_make_public
    )
    activate.add_argument("--cache-control")

    return parser


def run(args: argparse.Namespace, store: RevisionStore) -> int:
    if not args.bucket:
        logger.error("No bucket given (use --bucket or DEPLOY_BUCKET)")
        return EXIT_USAGE

    try:
        if args.command == "list":
            revisions = store.fetch_revisions(
                RevisionListRequest(
                    bucket=args.bucket,
                    prefix=args.prefix,
                    file_pattern=args.file_pattern,
                )
            )
            for revision in revisions:
                marker = "*" if revision.active else " "
                print(f"{marker} {revision.revision}\t{revision.timestamp.isoformat()}")
        elif args.command == "upload":
            store.upload(
                UploadRequest(
                    bucket=args.bucket,
                    prefix=args.prefix,
                    file_pattern=args.file_pattern,
                    revision_key=args.revision_key,
                    file_path=args.file_path,
                    acl=args.acl,
                    allow_overwrite=args.allow_overwrite,
                    gzipped_file_paths=args.gzipped_file_paths,
                )
            )
        elif args.command == "activate":
            store.activate(
                ActivateRequest(
                    bucket=args.bucket,
                    prefix=args.prefix,
                    file_pattern=args.file_pattern,
                    revision_key=args.revision_key,
                    meta=ObjectMeta(cache_control=args.cache_control),
                    make_public=args.make_public,
                )
            )
    except RevisionError as e:
        logger.error(str(e))
        return EXIT_REVISION_ERROR
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Storage error: {e}")
        return EXIT_STORAGE_ERROR
    except OSError as e:
        logger.error(f"Could not read {e.filename}: {e.strerror}")
        return EXIT_STORAGE_ERROR

    return 0


def main(argv: Optional[List[str]] = None, store: Optional[RevisionStore] = None) -> int:
    args = build_parser(settings).parse_args(argv)
    if args.command == "upload" and args.gzipped_file_paths is None:
        args.gzipped_file_paths = list(settings.deploy_gzipped_file_paths)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    if store is None:
        store = RevisionStore(S3Client(settings.to_s3_config()))
    return run(args, store)


if __name__ == "__main__":
    sys.exit(main())

"""
Operator command line.

    python cli.py init-db
    python cli.py merge-tenants [--dry-run]
    python cli.py sweep
    python cli.py validate-deletion <user_id> [--delete]
"""

import argparse
import asyncio
import json
import logging
from uuid import UUID

import httpx
from sqlmodel import SQLModel

from config import ApplicationConfig
from src.app.use_cases.diagnostics import ValidateReferencesUseCase
from src.app.use_cases.tenants import MergeTenantsUseCase
from src.depends import engine, run_retention_sweep, unit_of_work_factory
from src.domain import entities  # noqa: F401  registers tables on SQLModel.metadata
from src.domain.references import user_reference_checks
from src.domain.tenant_names import TenantNameNormalizer

logger = logging.getLogger("cli")


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    await engine.dispose()


def cmd_init_db(args: argparse.Namespace) -> int:
    asyncio.run(_init_db())
    logger.info("Tables created")
    return 0


def cmd_merge_tenants(args: argparse.Namespace) -> int:
    normalizer = TenantNameNormalizer(
        boilerplate_suffixes=ApplicationConfig.NAME_BOILERPLATE_SUFFIXES,
        business_nouns=ApplicationConfig.NAME_BUSINESS_NOUNS,
    )
    use_case = MergeTenantsUseCase(
        unit_of_work_factory,
        normalizer=normalizer,
        max_workers=ApplicationConfig.WORKER_POOL_SIZE,
    )
    result = asyncio.run(use_case.execute(dry_run=args.dry_run))
    if result.is_err():
        logger.error(f"{result.error.code}: {result.error.message} ({result.error.reason})")
        return 1
    _print(result.value.model_dump())
    return 1 if result.value.failed_total or result.value.groups_errored else 0


def cmd_sweep(args: argparse.Namespace) -> int:
    result = asyncio.run(run_retention_sweep())
    if result.is_err():
        logger.error(f"{result.error.code}: {result.error.message} ({result.error.reason})")
        return 1
    _print(result.value.model_dump())
    return 1 if result.value.auth_cleanup_errors else 0


def _request_immediate_delete(user_id: UUID) -> bool:
    url = f"{ApplicationConfig.ADMIN_URL.rstrip('/')}/admin/delete-user"
    try:
        response = httpx.post(
            url,
            json={"userId": str(user_id), "immediate": True},
            headers={"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY},
            timeout=ApplicationConfig.IDENTITY_TIMEOUT_SECONDS * 3,
        )
    except httpx.HTTPError as exc:
        logger.error(f"Delete request to {url} failed: {exc}")
        return False

    if response.status_code >= 400:
        logger.error(f"Delete request rejected: {response.status_code} {response.text}")
        return False
    _print(response.json())
    return True


def cmd_validate_deletion(args: argparse.Namespace) -> int:
    use_case = ValidateReferencesUseCase(
        unit_of_work_factory,
        user_reference_checks(),
        sample_limit=ApplicationConfig.VALIDATION_SAMPLE_LIMIT,
    )
    report = asyncio.run(use_case.execute(args.user_id)).value

    for table in report.tables:
        if table.error:
            print(f"{table.table:<22} ERROR {table.error}")
            continue
        print(f"{table.table:<22} {table.count:>5}  columns={','.join(table.columns) or '-'}")
        for row in table.sample:
            print(f"    {json.dumps(row, default=str)}")
    print(f"total references: {report.total_references}")

    if args.delete:
        # A clean report can still leave the identity behind, the admin API removes it
        logger.info(f"Requesting immediate deletion of {args.user_id}")
        return 0 if _request_immediate_delete(args.user_id) else 1

    return 0 if report.clean else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tenant-integrity")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("init-db", help="Create all tables")
    sp.set_defaults(func=cmd_init_db)

    sp = sub.add_parser("merge-tenants", help="Normalize tenant names and merge duplicates")
    sp.add_argument("--dry-run", action="store_true")
    sp.set_defaults(func=cmd_merge_tenants)

    sp = sub.add_parser("sweep", help="Finalize expired account deletions now")
    sp.set_defaults(func=cmd_sweep)

    sp = sub.add_parser("validate-deletion", help="Report rows still referencing a user")
    sp.add_argument("user_id", type=UUID)
    sp.add_argument("--delete", action="store_true", help="Request immediate deletion afterwards")
    sp.set_defaults(func=cmd_validate_deletion)

    return p


def main() -> int:
    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args()
    return int(args.func(args) or 0)


if __name__ == "__main__":
    raise SystemExit(main())

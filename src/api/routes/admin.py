"""
Admin API Routes - Tenant Integrity and Account Lifecycle

These endpoints are for operators and internal services.
Authentication is via Admin API Key.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from libs.result import Error
from config import ApplicationConfig
from src.adapter.services.retention_scheduler import RetentionSweepScheduler
from src.api.error import ClientError, ServerError, UpstreamError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.identity_provider import IIdentityProvider
from src.app.use_cases.accounts import (
    DeleteAccountResponse,
    DeleteAccountUseCase,
    DeletionStatusResponse,
    GetDeletionStatusUseCase,
    ListIdentitiesUseCase,
    ListUsersResponse,
    RestoreAccountResponse,
    RestoreAccountUseCase,
    RetentionSweepResponse,
    SyncUserProfilesUseCase,
    SyncUsersResponse,
)
from src.app.use_cases.diagnostics import ReferenceReportResponse, ValidateReferencesUseCase
from src.app.use_cases.tenants import MergeTenantsResponse, MergeTenantsUseCase
from src.depends import (
    UnitOfWorkFactory,
    get_identity_provider,
    get_retention_scheduler,
    get_unit_of_work_factory,
    get_worker_pool_size,
)
from src.domain.references import tenant_reference_checks, user_reference_checks
from src.domain.tenant_names import TenantNameNormalizer

router = APIRouter(
    prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_admin_api_key)]
)


class DeleteUserRequest(BaseModel):
    """Delete user HTTP request payload"""

    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId", description="Identity id of the account")
    email: Optional[str] = Field(None, description="Email to keep on the deletion record")
    immediate: bool = Field(False, description="Skip the retention window")


class RestoreUserRequest(BaseModel):
    """Restore user HTTP request payload"""

    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId", description="Identity id of the account")


@router.post(
    "/delete-user",
    status_code=status.HTTP_200_OK,
    response_model=DeleteAccountResponse,
    response_model_exclude_none=True,
)
async def delete_user(
    request: DeleteUserRequest,
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
):
    """
    Delete User

    Soft deletion by default: rows are removed now, the identity after the
    retention window. `immediate=true` removes both right away.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 502 Bad Gateway: IDENTITY_DELETE_FAILED (rows already deleted)
        - 500 Internal Server Error: DELETION_RECORD_FAILED, ROW_PURGE_FAILED
    """
    use_case = DeleteAccountUseCase(
        uow_factory, identity_provider, retention_days=ApplicationConfig.RETENTION_DAYS
    )
    result = await use_case.execute(request.user_id, request.email, request.immediate)

    if result.is_err():
        error = result.error
        if error.code == "IDENTITY_DELETE_FAILED":
            raise UpstreamError(error)
        raise ServerError(error)

    return result.value


@router.post(
    "/restore-user",
    status_code=status.HTTP_200_OK,
    response_model=RestoreAccountResponse,
)
async def restore_user(
    request: RestoreUserRequest,
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
):
    """
    Restore User

    Reverses a soft deletion while the retention window is open.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 400 Bad Request: ACCOUNT_NOT_DELETED
        - 410 Gone: NOT_RESTORABLE
        - 409 Conflict: DELETION_IN_PROGRESS (soft delete still purging rows)
        - 500 Internal Server Error: RESTORE_FAILED, RELINK_INCOMPLETE
    """
    use_case = RestoreAccountUseCase(uow_factory)
    result = await use_case.execute(request.user_id)

    if result.is_err():
        error = result.error
        if error.code == "ACCOUNT_NOT_DELETED":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "NOT_RESTORABLE":
            raise ClientError(error, status_code=status.HTTP_410_GONE)
        elif error.code == "DELETION_IN_PROGRESS":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    return result.value


@router.post(
    "/cleanup-expired-deletions",
    status_code=status.HTTP_200_OK,
    response_model=RetentionSweepResponse,
)
async def cleanup_expired_deletions(
    scheduler: RetentionSweepScheduler = Depends(get_retention_scheduler),
):
    """
    Cleanup Expired Deletions

    Runs the retention sweep now.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 409 Conflict: SWEEP_IN_PROGRESS
        - 500 Internal Server Error: DELETIONS_UNAVAILABLE
    """
    result = await scheduler.run_now()

    if result is None:
        raise ClientError(
            Error("SWEEP_IN_PROGRESS", "A retention sweep is already running"),
            status_code=status.HTTP_409_CONFLICT,
        )
    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.get(
    "/deletion-status/{user_id}",
    status_code=status.HTTP_200_OK,
    response_model=DeletionStatusResponse,
)
async def deletion_status(
    user_id: UUID,
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
):
    """
    Deletion Status

    Requires: X-Admin-API-Key header
    """
    use_case = GetDeletionStatusUseCase(uow_factory)
    result = await use_case.execute(user_id)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.get(
    "/list-users",
    status_code=status.HTTP_200_OK,
    response_model=ListUsersResponse,
)
async def list_users(
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
):
    """
    List Users

    Identities as reported by the identity provider.

    Raises:
        - 502 Bad Gateway: IDENTITY_PROVIDER_UNAVAILABLE
    """
    use_case = ListIdentitiesUseCase(identity_provider)
    result = await use_case.execute()

    if result.is_err():
        raise UpstreamError(result.error)

    return result.value


@router.post(
    "/sync-users",
    status_code=status.HTTP_200_OK,
    response_model=SyncUsersResponse,
)
async def sync_users(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
):
    """
    Sync Users

    Upserts one user profile per identity. Users pending deletion are skipped.

    Raises:
        - 502 Bad Gateway: IDENTITY_PROVIDER_UNAVAILABLE
        - 500 Internal Server Error: SYNC_FAILED
    """
    use_case = SyncUserProfilesUseCase(uow_factory, identity_provider)
    result = await use_case.execute()

    if result.is_err():
        error = result.error
        if error.code == "IDENTITY_PROVIDER_UNAVAILABLE":
            raise UpstreamError(error)
        raise ServerError(error)

    return result.value


@router.post(
    "/merge-tenants",
    status_code=status.HTTP_200_OK,
    response_model=MergeTenantsResponse,
)
async def merge_tenants(
    dry_run: bool = Query(False, description="Report the plan without changing anything"),
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    max_workers: int = Depends(get_worker_pool_size),
):
    """
    Merge Duplicate Tenants

    One full normalize-group-merge pass. Safe to re-run.

    Raises:
        - 500 Internal Server Error: TENANTS_UNAVAILABLE
    """
    normalizer = TenantNameNormalizer(
        boilerplate_suffixes=ApplicationConfig.NAME_BOILERPLATE_SUFFIXES,
        business_nouns=ApplicationConfig.NAME_BUSINESS_NOUNS,
    )
    use_case = MergeTenantsUseCase(uow_factory, normalizer=normalizer, max_workers=max_workers)
    result = await use_case.execute(dry_run=dry_run)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.get(
    "/references/users/{user_id}",
    status_code=status.HTTP_200_OK,
    response_model=ReferenceReportResponse,
)
async def user_references(
    user_id: UUID,
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
):
    """
    User References

    Counts rows still referencing a user across the user-bearing tables.
    """
    use_case = ValidateReferencesUseCase(
        uow_factory,
        user_reference_checks(),
        sample_limit=ApplicationConfig.VALIDATION_SAMPLE_LIMIT,
    )
    result = await use_case.execute(user_id)
    return result.value


@router.get(
    "/references/tenants/{tenant_id}",
    status_code=status.HTTP_200_OK,
    response_model=ReferenceReportResponse,
)
async def tenant_references(
    tenant_id: int,
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
):
    """
    Tenant References

    Counts rows still pointing at a tenant, e.g. a duplicate after a merge.
    """
    use_case = ValidateReferencesUseCase(
        uow_factory,
        tenant_reference_checks(),
        sample_limit=ApplicationConfig.VALIDATION_SAMPLE_LIMIT,
    )
    result = await use_case.execute(tenant_id)
    return result.value

# rentaldesk/modules/backups/routers.py

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from loguru import logger

from rentaldesk.models.api_common import DetailResponse, OperationResult
from rentaldesk.models.backups import BackupStatus

from .errors import BackupFileNotFound
from .services import BackupService, get_backup_service

backups_router = APIRouter()


@backups_router.get(
    "/backups/status",
    response_model=BackupStatus,
    response_model_by_alias=True,
    summary="Recent backup activity and disk usage",
    tags=["Backups"],
)
async def backup_status_endpoint(backup_service: BackupService = Depends(get_backup_service)):
    return await backup_service.get_backup_status()


@backups_router.get(
    "/agreements/{agreement_id}/pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Latest stored PDF"},
        404: {"model": DetailResponse},
    },
    summary="Download an agreement's stored PDF",
    tags=["Backups"],
)
async def download_agreement_pdf_endpoint(
    agreement_id: str = Path(..., description="Agreement ID"),
    backup_service: BackupService = Depends(get_backup_service),
):
    try:
        data, filename = await backup_service.get_agreement_pdf(agreement_id)
    except BackupFileNotFound as e:
        logger.bind(agreement_id=agreement_id).warning(str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PDF not found")
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@backups_router.post(
    "/export/vehicles",
    response_model=OperationResult,
    response_model_by_alias=True,
    responses={500: {"model": DetailResponse}},
    summary="Export the fleet to CSV now",
    tags=["Backups"],
)
async def export_vehicles_endpoint(backup_service: BackupService = Depends(get_backup_service)):
    try:
        file_path = await backup_service.export_vehicles_to_csv()
    except Exception as e:
        logger.exception(f"Manual vehicle export failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to export vehicles")
    return OperationResult(success=True, file_path=file_path)


@backups_router.post(
    "/backup/database",
    response_model=OperationResult,
    response_model_by_alias=True,
    responses={500: {"model": DetailResponse}},
    summary="Dump the tracked collections to JSON now",
    tags=["Backups"],
)
async def backup_database_endpoint(backup_service: BackupService = Depends(get_backup_service)):
    try:
        file_path = await backup_service.perform_database_backup()
    except Exception as e:
        logger.exception(f"Manual database backup failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to backup database")
    return OperationResult(success=True, file_path=file_path)

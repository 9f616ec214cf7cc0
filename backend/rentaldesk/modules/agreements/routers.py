# rentaldesk/modules/agreements/routers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from loguru import logger

from rentaldesk.models.agreements import AgreementCreateAPI, AgreementStatusUpdateAPI
from rentaldesk.models.api_common import DetailResponse

from .models import AgreementInDB
from .repository import AgreementRepository, get_agreement_repository
from .services import AgreementService, get_agreement_service

agreements_router = APIRouter()


@agreements_router.get(
    "",
    response_model=List[AgreementInDB],
    summary="List rental agreements, newest first",
    tags=["Agreements"],
)
async def list_agreements_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0, description="0 returns every agreement"),
    agreement_repo: AgreementRepository = Depends(get_agreement_repository),
):
    return await agreement_repo.list_all(skip=skip, limit=limit)


@agreements_router.get(
    "/{agreement_id}",
    response_model=AgreementInDB,
    responses={404: {"model": DetailResponse}},
    summary="Get one rental agreement",
    tags=["Agreements"],
)
async def get_agreement_endpoint(
    agreement_id: str = Path(..., description="Agreement ID"),
    agreement_repo: AgreementRepository = Depends(get_agreement_repository),
):
    agreement = await agreement_repo.get_by_id(agreement_id)
    if not agreement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found")
    return agreement


@agreements_router.post(
    "",
    response_model=AgreementInDB,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": DetailResponse}},
    summary="Create a rental agreement",
    tags=["Agreements"],
)
async def create_agreement_endpoint(
    agreement_in: AgreementCreateAPI,
    agreement_service: AgreementService = Depends(get_agreement_service),
):
    """
    Stores the agreement under the next AGR number and starts its PDF/JSON
    backup in the background. Backup failures never fail this request.
    """
    try:
        return await agreement_service.create_agreement(agreement_in)
    except ValueError as e:
        logger.warning(f"Agreement rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@agreements_router.put(
    "/{agreement_id}",
    response_model=AgreementInDB,
    responses={404: {"model": DetailResponse}},
    summary="Change an agreement's status",
    tags=["Agreements"],
)
async def update_agreement_endpoint(
    update_in: AgreementStatusUpdateAPI,
    agreement_id: str = Path(..., description="Agreement ID"),
    agreement_repo: AgreementRepository = Depends(get_agreement_repository),
):
    updated = await agreement_repo.update_status(agreement_id, update_in.status)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agreement not found")
    logger.bind(agreement_number=updated.agreement_number).info(f"Agreement status now '{updated.status}'")
    return updated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from typing import List, Optional
import logging

from ..schemas import CreateQRRequest, QRCodeResponse, QRStatsResponse, UpdateQRRequest
from ..exceptions import NotFoundError
from ..application.services.qr_service import QRService
from .deps import get_current_admin, get_qr_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/qr", tags=["QR Codes"])


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


@router.post("", response_model=QRCodeResponse, status_code=201)
def create_qr_code(payload: CreateQRRequest,
                   current_admin: str = Depends(get_current_admin),
                   service: QRService = Depends(get_qr_service)):
    return service.create_qr_code(payload.url, payload.format)


@router.get("", response_model=List[QRCodeResponse])
def list_qr_codes(current_admin: str = Depends(get_current_admin),
                  service: QRService = Depends(get_qr_service)):
    return service.list_qr_codes()


@router.get("/stats", response_model=QRStatsResponse)
def get_qr_stats(current_admin: str = Depends(get_current_admin),
                 service: QRService = Depends(get_qr_service)):
    return service.get_qr_code_stats()


# Authorised by the signed token alone so <img> tags can load it
@router.get("/file/{key}")
def get_qr_file(key: str,
                token: Optional[str] = Query(None),
                authorization: Optional[str] = Header(None),
                service: QRService = Depends(get_qr_service)):
    token = token or _bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Signed token required")
    try:
        data, content_type = service.get_file(key, token)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "private, max-age=60"})


@router.get("/{qr_id}", response_model=QRCodeResponse)
def get_qr_code(qr_id: str,
                current_admin: str = Depends(get_current_admin),
                service: QRService = Depends(get_qr_service)):
    try:
        return service.get_qr_code(qr_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/{qr_id}", response_model=QRCodeResponse)
def update_qr_code(qr_id: str, payload: UpdateQRRequest,
                   current_admin: str = Depends(get_current_admin),
                   service: QRService = Depends(get_qr_service)):
    try:
        return service.update_qr_code(qr_id, url=payload.url, format=payload.format)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
import logging

from ..exceptions import NotFoundError
from ..application.services.qr_service import QRService
from .deps import get_qr_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/qr", tags=["QR Redirect"])


@router.get("/{slug}")
def redirect_qr_code(slug: str, service: QRService = Depends(get_qr_service)):
    try:
        url = service.resolve_redirect(slug)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return RedirectResponse(url=url, status_code=302)

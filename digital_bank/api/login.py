"""
Authentication endpoints
"""

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from ..errors import ApiError
from .auth import DigitalBank, get_digital_bank, internal_error, read_json


router = APIRouter()


@router.post("/login")
async def login(
    request: Request,
    bank: DigitalBank = Depends(get_digital_bank)
):
    """Authenticate with email and password and return an access token"""
    try:
        payload = await read_json(request)
        return await run_in_threadpool(bank.accounts.login, payload)
    except ApiError as e:
        return e.to_response()
    except Exception:
        return internal_error("login")

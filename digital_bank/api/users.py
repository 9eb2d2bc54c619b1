"""
User account endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from starlette.concurrency import run_in_threadpool

from ..errors import ApiError
from .auth import DigitalBank, get_digital_bank, internal_error, read_json


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_user(
    request: Request,
    bank: DigitalBank = Depends(get_digital_bank)
):
    """Register a new user and return it with an access token"""
    try:
        payload = await read_json(request)
        return await run_in_threadpool(bank.accounts.register, payload)
    except ApiError as e:
        return e.to_response()
    except Exception:
        return internal_error("register")


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    authorization: Optional[str] = Header(None),
    bank: DigitalBank = Depends(get_digital_bank)
):
    """Get the caller's own profile"""
    try:
        return await run_in_threadpool(bank.accounts.get_user, authorization, user_id)
    except ApiError as e:
        return e.to_response()
    except Exception:
        return internal_error("get_user", user_id)


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    request: Request,
    authorization: Optional[str] = Header(None),
    bank: DigitalBank = Depends(get_digital_bank)
):
    """Update any subset of the caller's profile fields"""
    try:
        payload = await read_json(request)
        return await run_in_threadpool(bank.accounts.update_user, authorization, user_id, payload)
    except ApiError as e:
        return e.to_response()
    except Exception:
        return internal_error("update_user", user_id)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    authorization: Optional[str] = Header(None),
    bank: DigitalBank = Depends(get_digital_bank)
):
    """Delete the caller's account unless a bank account is linked"""
    try:
        return await run_in_threadpool(bank.accounts.delete_user, authorization, user_id)
    except ApiError as e:
        return e.to_response()
    except Exception:
        return internal_error("delete_user", user_id)

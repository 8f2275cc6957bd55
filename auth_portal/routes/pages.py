"""
Page Routes
Receiving pages that surface the message carried by the last redirect
"""

from fastapi import APIRouter, Request

from auth_portal.models.messages import FormMessageResponse
from auth_portal.services.auth_service import (
    FORGOT_PASSWORD_PATH, RESET_PASSWORD_PATH, SIGN_IN_PATH, SIGN_UP_PATH
)
from auth_portal.utils.redirects import decode_message

router = APIRouter()


def _page(name: str, request: Request) -> FormMessageResponse:
    return FormMessageResponse(page=name, message=decode_message(request.query_params))


@router.get(SIGN_IN_PATH, response_model=FormMessageResponse)
async def sign_in_page(request: Request):
    return _page("sign-in", request)


@router.get(SIGN_UP_PATH, response_model=FormMessageResponse)
async def sign_up_page(request: Request):
    return _page("sign-up", request)


@router.get(FORGOT_PASSWORD_PATH, response_model=FormMessageResponse)
async def forgot_password_page(request: Request):
    return _page("forgot-password", request)


@router.get(RESET_PASSWORD_PATH, response_model=FormMessageResponse)
async def reset_password_page(request: Request):
    return _page("reset-password", request)

import logging
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from turmeric_care.errors import AccountError
from turmeric_care.services.accounts import authenticate, create_user
from turmeric_care.templating import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session_user_id(request: Request) -> Optional[str]:
    return request.session.get("user_id")


@router.get("/signin", response_class=HTMLResponse)
async def signin_page(request: Request):
    return templates.TemplateResponse(request, "signin.html", {"flow": "signIn", "error": None})


@router.post("/signin", response_class=HTMLResponse)
async def signin(request: Request, email: str = Form(...), password: str = Form(...)):
    user = authenticate(email, password)
    if not user:
        return templates.TemplateResponse(
            request,
            "signin.html",
            {"flow": "signIn", "error": "Invalid email or password. Please try again."},
            status_code=401,
        )
    request.session["user_id"] = user.id
    request.session["email"] = user.email
    return RedirectResponse(url="/", status_code=303)


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    return templates.TemplateResponse(request, "signin.html", {"flow": "signUp", "error": None})


@router.post("/signup", response_class=HTMLResponse)
async def signup(request: Request, email: str = Form(...), password: str = Form(...)):
    try:
        user = create_user(email, password)
    except AccountError as e:
        return templates.TemplateResponse(
            request, "signin.html", {"flow": "signUp", "error": str(e)}, status_code=400
        )
    request.session["user_id"] = user.id
    request.session["email"] = user.email
    return RedirectResponse(url="/", status_code=303)


@router.get("/signout")
async def signout(request: Request):
    request.session.clear()
    return RedirectResponse(url="/", status_code=303)

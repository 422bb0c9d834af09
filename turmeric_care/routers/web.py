"""
Server-rendered pages.

The home page renders whatever the session's ViewStateMachine says:
upload form (IDLE), progress panel (ANALYZING/SEARCHING, auto-refreshing),
result card (COMPLETED) or error panel (ERROR).
"""
import logging

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from turmeric_care import dependencies
from turmeric_care.config import ANALYSIS_POLL_INTERVAL, HISTORY_LIMIT, MAX_UPLOAD_BYTES
from turmeric_care.errors import InvalidViewTransition, UploadValidationError
from turmeric_care.routers.auth import get_session_user_id
from turmeric_care.services.analysis import (
    create_pending_analysis,
    get_analysis,
    get_user_analyses,
    run_analysis,
)
from turmeric_care.services.disease_catalog import get_disease, list_diseases
from turmeric_care.templating import templates
from turmeric_care.utils.upload import to_data_url
from turmeric_care.utils.view_state import ViewState, ViewStateMachine

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_KEY = "view"
UPLOAD_FAILED_MESSAGE = "Upload failed. Please try again."


def load_view(request: Request) -> ViewStateMachine:
    return ViewStateMachine.from_dict(request.session.get(SESSION_KEY))


def save_view(request: Request, view: ViewStateMachine) -> None:
    request.session[SESSION_KEY] = view.to_dict()


async def analyze_in_background(analysis_id: str, image_data_url: str) -> None:
    try:
        await run_analysis(analysis_id, image_data_url)
    except Exception as e:
        # Already recorded as failed; the loading page picks that up
        logger.warning(f"Background analysis {analysis_id} ended in failure: {e}")


@router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    view = load_view(request)
    analysis = None

    if view.analysis_id:
        analysis = get_analysis(view.analysis_id)

    if view.state == ViewState.SEARCHING:
        view.result_available(analysis)
        view.check_timeout()
        save_view(request, view)

    return templates.TemplateResponse(request, "index.html", {
        "view": view,
        "analysis": analysis,
        "poll_interval": ANALYSIS_POLL_INTERVAL,
    })


@router.post("/upload")
async def upload(request: Request, background_tasks: BackgroundTasks, file: UploadFile = File(...)):
    view = load_view(request)
    data = await file.read(MAX_UPLOAD_BYTES + 1)

    try:
        if not view.select_image(file.content_type, len(data)):
            save_view(request, view)
            return RedirectResponse(url="/", status_code=303)

        image_data_url = to_data_url(file.content_type, data)
        analysis = create_pending_analysis(image_data_url, user_id=get_session_user_id(request))
        view.image_decoded(analysis.id)
        background_tasks.add_task(analyze_in_background, analysis.id, image_data_url)

    except InvalidViewTransition as e:
        logger.info(f"Upload ignored: {e}")
    except UploadValidationError as e:
        view.fail(str(e))
    except Exception as e:
        logger.error(f"Upload failed: {e}", exc_info=True)
        view.fail(UPLOAD_FAILED_MESSAGE)

    save_view(request, view)
    return RedirectResponse(url="/", status_code=303)


@router.post("/reset")
async def reset(request: Request):
    view = load_view(request)
    try:
        view.reset()
    except InvalidViewTransition as e:
        logger.info(f"Reset ignored: {e}")
    save_view(request, view)
    return RedirectResponse(url="/", status_code=303)


@router.get("/analyses/{analysis_id}", response_class=HTMLResponse)
async def analysis_page(request: Request, analysis_id: str):
    analysis = get_analysis(analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return templates.TemplateResponse(request, "analysis.html", {"analysis": analysis})


@router.get("/images/{storage_id}")
async def image(storage_id: str):
    stored = dependencies.store.load_image(storage_id)
    if not stored:
        raise HTTPException(status_code=404, detail="Image not found")
    data, content_type = stored
    return Response(content=data, media_type=content_type)


@router.get("/library", response_class=HTMLResponse)
async def library(request: Request):
    return templates.TemplateResponse(request, "library.html", {
        "diseases": list_diseases(dependencies.store),
    })


@router.get("/library/{disease_id}", response_class=HTMLResponse)
async def library_detail(request: Request, disease_id: str):
    disease = get_disease(dependencies.store, disease_id)
    if not disease:
        raise HTTPException(status_code=404, detail="Disease not found")
    return templates.TemplateResponse(request, "disease_detail.html", {"disease": disease})


@router.get("/history", response_class=HTMLResponse)
async def history(request: Request):
    user_id = get_session_user_id(request)
    if not user_id:
        return RedirectResponse(url="/signin", status_code=303)
    return templates.TemplateResponse(request, "history.html", {
        "analyses": get_user_analyses(user_id),
        "limit": HISTORY_LIMIT,
    })

"""Board view and stage-move endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from factory_portal.api.v1._authz import authorize, map_auth_error, map_domain_error
from factory_portal.core.dependencies import get_db_session
from factory_portal.core.exceptions import FactoryPortalException
from factory_portal.schemas.board import BoardResponse, MoveRequest, MoveResponse
from factory_portal.services.board_sync import load_board_view
from factory_portal.services.stage_pipeline import StagePipeline

router = APIRouter(tags=["board"])


@router.get("/runs/{run_id}/board", response_model=BoardResponse)
def get_board(
    run_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> BoardResponse:
    try:
        authorize(authorization=authorization, scopes=["board.read"])
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        view = load_board_view(db, run_id)
    except FactoryPortalException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return BoardResponse.from_view(view)


@router.post("/guitars/{guitar_id}/move", response_model=MoveResponse)
def move_guitar(
    guitar_id: str,
    payload: MoveRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> MoveResponse:
    try:
        caller = authorize(authorization=authorization, scopes=["guitars.move"])
    except Exception as exc:
        code, detail = map_auth_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc

    try:
        guitar = StagePipeline(db=db).transition(guitar_id, payload.stage_id, caller)
    except FactoryPortalException as exc:
        code, detail = map_domain_error(exc)
        raise HTTPException(status_code=code, detail=detail) from exc
    return MoveResponse(guitar_id=guitar.id, run_id=guitar.run_id, stage_id=guitar.stage_id)

"""FastAPI backend for family trees, DNA analysis and the assistant."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import Field

from ancestree.context import Services, SessionContext
from ancestree.errors import AncestreeError, NotFoundError, StoreError
from ancestree.graph import tree_ops
from ancestree.graph.profile_store import suggested_matches
from ancestree.models import (
    Document,
    Edge,
    EdgeRelation,
    FamilyHead,
    FamilyMember,
    Member,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class AssistantRequest(Document):
    query: str
    user_id: Optional[str] = None
    scope: str = "all"


class SaveFamilyDataRequest(Document):
    user_id: str
    family_heads: list[FamilyHead] = Field(default_factory=list)
    family_members: list[FamilyMember] = Field(default_factory=list)


class RelativeRequest(Document):
    member: Member
    link_to: str
    relation: EdgeRelation


class PositionRequest(Document):
    x: float
    y: float


class AnalyzeRequest(Document):
    user_id: str
    dna_data: str
    file_name: str = ""


class ProfileRequest(Document):
    user_id: str
    full_name: str
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    clan_or_cultural_info: Optional[str] = None
    relatives_names: list[str] = Field(default_factory=list)
    location: Optional[str] = None
    marital_status: Optional[str] = None
    spouse_name: Optional[str] = None
    education: Optional[str] = None
    work: Optional[str] = None
    phone_number: Optional[str] = None


class ConnectionCreate(Document):
    from_user_id: str
    to_user_id: str


class ConnectionUpdate(Document):
    status: str


def get_services(request: Request) -> Services:
    return request.app.state.services


def user_session(user_id: str, services: Services = Depends(get_services)):
    """Session bound to the user in the path, signed out after the request."""
    with services.session(user_id) as ctx:
        yield ctx


@router.get("/health")
async def health():
    return {"status": "ok"}


# ─────────────────────────────────────────
# Assistant
# ─────────────────────────────────────────

@router.post("/api/assistant")
async def assistant(req: AssistantRequest, services: Services = Depends(get_services)):
    try:
        if req.user_id:
            with services.session(req.user_id) as ctx:
                answer = await ctx.assistant.ask(req.query, user_id=ctx.user_id, scope=req.scope)
        else:
            answer = await services.assistant.ask(req.query, scope=req.scope)
    except AncestreeError as e:
        if e.status_code < 500:
            raise
        logger.error("Assistant failed: %s", e)
        return JSONResponse(status_code=500, content={"error": "Assistant unavailable"})
    return {"response": answer}


# ─────────────────────────────────────────
# Family data and tree
# ─────────────────────────────────────────

@router.post("/api/save-family-data")
async def save_family_data(req: SaveFamilyDataRequest, services: Services = Depends(get_services)):
    with services.session(req.user_id) as ctx:
        try:
            tree = ctx.trees.save_family_data(ctx.user_id, req.family_heads, req.family_members)
        except StoreError as e:
            logger.error("Saving family data for %s failed: %s", req.user_id, e)
            return JSONResponse(status_code=500, content={"error": "Failed to save family information"})
    return {"success": True, "tree": tree.to_document()}


@router.get("/api/family-tree/{user_id}")
async def get_family_tree(ctx: SessionContext = Depends(user_session)):
    tree = ctx.trees.get_tree(ctx.user_id)
    return tree_ops.assign_positions(tree).to_document()


@router.put("/api/family-tree/{user_id}/members")
async def upsert_member(member: Member, ctx: SessionContext = Depends(user_session)):
    return ctx.trees.add_member(ctx.user_id, member).to_document()


@router.post("/api/family-tree/{user_id}/relatives")
async def add_relative(req: RelativeRequest, ctx: SessionContext = Depends(user_session)):
    tree = ctx.trees.add_relative(ctx.user_id, req.member, req.link_to, req.relation)
    return tree.to_document()


@router.patch("/api/family-tree/{user_id}/members/{member_id}/position")
async def move_member(member_id: str, req: PositionRequest, ctx: SessionContext = Depends(user_session)):
    return ctx.trees.move_member(ctx.user_id, member_id, req.x, req.y).to_document()


@router.post("/api/family-tree/{user_id}/edges")
async def link_relation(edge: Edge, reciprocal: bool = False, ctx: SessionContext = Depends(user_session)):
    return ctx.trees.link_relation(ctx.user_id, edge, reciprocal=reciprocal).to_document()


@router.delete("/api/family-tree/{user_id}/members/{member_id}")
async def delete_member(member_id: str, ctx: SessionContext = Depends(user_session)):
    return ctx.trees.delete_member(ctx.user_id, member_id).to_document()


@router.get("/api/family-tree/{user_id}/groups")
async def family_groups(owner_id: Optional[str] = Query(None, alias="ownerId"), ctx: SessionContext = Depends(user_session)):
    groups, labels = ctx.trees.get_groups(ctx.user_id, owner_id=owner_id)
    return {"groups": groups.to_dict(), "parents": labels.to_dict()}


# ─────────────────────────────────────────
# DNA, profiles, matches
# ─────────────────────────────────────────

@router.post("/api/dna/analyze")
async def analyze_dna(req: AnalyzeRequest, services: Services = Depends(get_services)):
    with services.session(req.user_id) as ctx:
        analysis = await ctx.dna.analyze(ctx.user_id, req.dna_data, req.file_name)
    return analysis.to_document()


@router.post("/api/profile")
async def save_profile(req: ProfileRequest, services: Services = Depends(get_services)):
    fields = req.model_dump(exclude={"user_id", "full_name", "relatives_names"})
    with services.session(req.user_id) as ctx:
        profile = ctx.profiles.save_profile(ctx.user_id, req.full_name, req.relatives_names, **fields)
    doc = profile.to_document()
    doc.pop("dnaData", None)
    return doc


@router.get("/api/profile/{user_id}")
async def get_profile(ctx: SessionContext = Depends(user_session)):
    profile = ctx.profiles.get(ctx.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    doc = profile.to_document()
    doc.pop("dnaData", None)
    return doc


@router.get("/api/matches/{user_id}")
async def matches(ctx: SessionContext = Depends(user_session)):
    return {"matches": [m.to_document() for m in suggested_matches(ctx.profiles, ctx.user_id)]}


# ─────────────────────────────────────────
# Connection requests
# ─────────────────────────────────────────

@router.post("/api/connections")
async def send_connection(req: ConnectionCreate, services: Services = Depends(get_services)):
    with services.session(req.from_user_id) as ctx:
        sent = ctx.connections.send(ctx.user_id, req.to_user_id)
    return {"id": sent.id, **sent.to_document()}


@router.put("/api/connections/{request_id}")
async def respond_connection(request_id: str, req: ConnectionUpdate, services: Services = Depends(get_services)):
    # answered on behalf of the recipient
    recipient = services.connections.get(request_id).to_user_id
    with services.session(recipient) as ctx:
        answered = ctx.connections.respond(request_id, req.status)
    return {"id": request_id, **answered.to_document()}


@router.get("/api/connections/{user_id}")
async def list_connections(ctx: SessionContext = Depends(user_session)):
    return ctx.connections.list_for(ctx.user_id)


# ─────────────────────────────────────────
# App factory
# ─────────────────────────────────────────

async def handle_app_error(request: Request, exc: AncestreeError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        message = exc.public_message
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content={"error": message})


async def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.info("Rejected %s %s: %d validation error(s)", request.method, request.url.path, len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Missing required fields"})


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the API. Without `services`, they are created from settings on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = Services.from_settings()
        yield
        await app.state.services.aclose()

    app = FastAPI(title="Ancestree API", lifespan=lifespan)
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AncestreeError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(router)
    return app


app = create_app()

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, RootModel

from procurement.core.config import get_settings
from procurement.db.errors import StoreError
from procurement.dependencies.auth import CurrentUser, InitiatorUser
from procurement.dependencies.services import TicketServiceDep
from procurement.tickets.service import TicketDetails, TicketService
from procurement.workflow.errors import RejectionReason, TransitionRejected
from procurement.workflow.models import TransitionPayload, User
from procurement.workflow.roles import Role, TicketEvent
from procurement.workflow.state import TicketStatus
from procurement.workflow.validator import MAX_COUNT

router = APIRouter(prefix="/tickets", tags=["tickets"])

_REJECTION_STATUS: dict[RejectionReason, int] = {
    RejectionReason.NOT_FOUND: 404,
    RejectionReason.FORBIDDEN: 403,
    RejectionReason.NOT_OWNER: 403,
    RejectionReason.ILLEGAL_TRANSITION: 409,
    RejectionReason.NOT_EDITABLE: 409,
    RejectionReason.CONFLICT: 409,
    RejectionReason.INVALID_PAYLOAD: 422,
    RejectionReason.UNKNOWN_STATE: 500,
}


class TicketCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    count: int = Field(..., gt=0, le=MAX_COUNT)


class ConfirmData(BaseModel):
    price: Decimal | None = None


class DenyData(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class EditTitleData(BaseModel):
    title: str


class EditDescriptionData(BaseModel):
    description: str


class CancelOperation(BaseModel):
    op: Literal["cancel"]


class ConfirmOperation(BaseModel):
    op: Literal["confirm"]
    data: ConfirmData


class DenyOperation(BaseModel):
    op: Literal["deny"]
    data: DenyData | None = None


class MarkAsPaidOperation(BaseModel):
    op: Literal["markAsPaid"]


class EditTitleOperation(BaseModel):
    op: Literal["editTitle"]
    data: EditTitleData


class EditDescriptionOperation(BaseModel):
    op: Literal["editDescription"]
    data: EditDescriptionData


TicketOperation = Annotated[
    Union[
        CancelOperation,
        ConfirmOperation,
        DenyOperation,
        MarkAsPaidOperation,
        EditTitleOperation,
        EditDescriptionOperation,
    ],
    Field(discriminator="op"),
]


class TicketEditRequest(RootModel[TicketOperation]):
    """Body of ``PATCH /tickets/{id}``: ``{"op": ..., "data": ...}``."""


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    role: Role


class TicketResponse(BaseModel):
    id: UUID
    title: str
    description: str
    status: TicketStatus
    count: int
    price: float | None
    initiator: UserSummary
    purchasing_manager: UserSummary | None
    accounting_manager: UserSummary | None
    created_at: datetime


class TicketListResponse(BaseModel):
    tickets: list[TicketResponse]
    total_count: int


def _summary(user: User | None) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary.model_validate(user)


def _to_response(details: TicketDetails) -> TicketResponse:
    ticket = details.ticket
    return TicketResponse(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        count=ticket.count,
        price=float(ticket.price) if ticket.price is not None else None,
        initiator=UserSummary.model_validate(details.initiator),
        purchasing_manager=_summary(details.purchasing_manager),
        accounting_manager=_summary(details.accounting_manager),
        created_at=ticket.created_at,
    )


def _to_http_exception(exc: TransitionRejected | StoreError) -> HTTPException:
    if isinstance(exc, TransitionRejected):
        return HTTPException(
            status_code=_REJECTION_STATUS[exc.reason],
            detail={"reason": exc.reason.value, "message": exc.message},
        )
    return HTTPException(
        status_code=_REJECTION_STATUS[exc.reason],
        detail={"reason": exc.reason.value, "message": str(exc)},
    )


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    user: InitiatorUser,
) -> TicketResponse:
    try:
        details = await service.create_ticket(
            user,
            title=payload.title,
            description=payload.description,
            count=payload.count,
        )
    except (TransitionRejected, StoreError) as exc:
        raise _to_http_exception(exc) from exc
    return _to_response(details)


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    service: TicketServiceDep,
    _: CurrentUser,
    offset: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1),
) -> TicketListResponse:
    settings = get_settings()
    page_size = min(limit or settings.default_page_size, settings.max_page_size)
    try:
        page = await service.list_tickets(offset=offset, limit=page_size)
    except StoreError as exc:
        raise _to_http_exception(exc) from exc
    return TicketListResponse(
        tickets=[_to_response(details) for details in page.items],
        total_count=page.total_count,
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: UUID, service: TicketServiceDep, _: CurrentUser) -> TicketResponse:
    try:
        details = await service.get_ticket(ticket_id)
    except StoreError as exc:
        raise _to_http_exception(exc) from exc
    return _to_response(details)


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def edit_ticket(
    ticket_id: UUID,
    payload: TicketEditRequest,
    service: TicketServiceDep,
    user: CurrentUser,
) -> TicketResponse:
    try:
        details = await _dispatch(service, ticket_id, user, payload.root)
    except (TransitionRejected, StoreError) as exc:
        raise _to_http_exception(exc) from exc
    return _to_response(details)


async def _dispatch(
    service: TicketService,
    ticket_id: UUID,
    user: User,
    operation: CancelOperation
    | ConfirmOperation
    | DenyOperation
    | MarkAsPaidOperation
    | EditTitleOperation
    | EditDescriptionOperation,
) -> TicketDetails:
    if isinstance(operation, EditTitleOperation):
        return await service.edit_title(ticket_id, actor=user, title=operation.data.title)
    if isinstance(operation, EditDescriptionOperation):
        return await service.edit_description(ticket_id, actor=user, description=operation.data.description)
    if isinstance(operation, ConfirmOperation):
        return await service.apply_event(
            ticket_id,
            actor=user,
            event=TicketEvent.CONFIRM,
            payload=TransitionPayload(price=operation.data.price),
        )
    if isinstance(operation, DenyOperation):
        reason = operation.data.reason if operation.data is not None else None
        return await service.apply_event(
            ticket_id,
            actor=user,
            event=TicketEvent.DENY,
            payload=TransitionPayload(reason=reason),
        )
    if isinstance(operation, MarkAsPaidOperation):
        return await service.apply_event(ticket_id, actor=user, event=TicketEvent.COMPLETE_PAYMENT)
    return await service.apply_event(ticket_id, actor=user, event=TicketEvent.CANCEL)

"""Profile screen API routes.

Each endpoint is one user action on a screen. The client sends the form as
it currently shows it and gets the updated form back, so no screen state is
kept server-side.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from api.dependencies.auth import CurrentUser, OptionalUser
from api.v1.dependencies import get_profile_service
from api.v1.schemas.profile import (
    DateOfBirthSelection,
    FormRefreshRequest,
    ImageSelection,
    NoticeResponse,
    ProfileFormData,
    ProfileFormResponse,
    UpdateFormData,
    UpdateFormResponse,
    UpdateOutcomeData,
    UpdateSubmitResponse,
)
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.controllers.notice import Notice, UpdateOutcome
from domain.controllers.profile_form import ProfileFormController, ProfileFormState
from domain.controllers.update_flow import UpdateFlowController, UpdateFormState
from domain.services.profile_service import ProfileService
from infrastructure.auth.provider import TokenUser

router = APIRouter(prefix="/profile", tags=["profile"])

STORE_FAILURE_RESPONSES: dict[int | str, dict[str, str]] = {
    502: {"description": "Profile store failed; the notice carries its message"},
}


def _notice(notice: Notice | None, response: Response) -> NoticeResponse | None:
    """Convert a notice, flagging store failures with 502."""
    if notice is None:
        return None
    if notice.is_error:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return NoticeResponse.model_validate(notice)


def _form_controller(
    service: ProfileService,
    user: TokenUser | None,
    form: ProfileFormData | None = None,
) -> ProfileFormController:
    state = ProfileFormState(**form.model_dump()) if form else None
    return ProfileFormController(service, user, state=state)


def _form_response(
    controller: ProfileFormController, notice: Notice | None, response: Response
) -> ProfileFormResponse:
    return ProfileFormResponse(
        data=ProfileFormData.model_validate(controller.state),
        notice=_notice(notice, response),
    )


# --- main profile screen ---


@router.get(
    "/form",
    response_model=ProfileFormResponse,
    summary="Open the profile screen",
    responses=STORE_FAILURE_RESPONSES,
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def open_profile_form(
    request: Request,
    response: Response,
    user: OptionalUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileFormResponse:
    """Load the stored profile into the form. Anonymous callers get an empty form."""
    controller = _form_controller(service, user)
    notice = await controller.on_enter()
    return _form_response(controller, notice, response)


@router.post(
    "/form/date-of-birth",
    response_model=ProfileFormResponse,
    summary="Pick a date of birth",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def select_date_of_birth(
    request: Request,
    response: Response,
    body: DateOfBirthSelection,
    user: OptionalUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileFormResponse:
    """Record the picked date in the form and compute the age. Nothing is saved."""
    controller = _form_controller(service, user, body.form)
    controller.select_date_of_birth(body.year, body.month, body.day)
    return _form_response(controller, None, response)


@router.post(
    "/form/image",
    response_model=ProfileFormResponse,
    summary="Pick a profile picture",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def pick_image(
    request: Request,
    response: Response,
    body: ImageSelection,
    user: OptionalUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileFormResponse:
    """Record the picked image reference in the form. Nothing is saved."""
    controller = _form_controller(service, user, body.form)
    controller.pick_image(body.uri)
    return _form_response(controller, None, response)


@router.post(
    "/form/submit",
    response_model=ProfileFormResponse,
    summary="Save the profile",
    responses=STORE_FAILURE_RESPONSES,
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def submit_profile_form(
    request: Request,
    response: Response,
    body: ProfileFormData,
    user: CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileFormResponse:
    """Replace the stored profile with the form, keeping fields this screen does not edit."""
    controller = _form_controller(service, user, body)
    notice = await controller.on_submit()
    return _form_response(controller, notice, response)


@router.post(
    "/form/refresh",
    response_model=ProfileFormResponse,
    summary="Return from the update screen",
    responses=STORE_FAILURE_RESPONSES,
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def refresh_profile_form(
    request: Request,
    response: Response,
    body: FormRefreshRequest,
    user: OptionalUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileFormResponse:
    """Reload the form if the update screen reported a change."""
    controller = _form_controller(service, user, body.form)
    outcome = UpdateOutcome(changed=body.outcome.changed, closed=body.outcome.closed)
    notice = await controller.on_update_finished(outcome)
    return _form_response(controller, notice, response)


# --- update screen ---


@router.get(
    "/update-form",
    response_model=UpdateFormResponse,
    summary="Open the update screen",
    responses=STORE_FAILURE_RESPONSES,
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def open_update_form(
    request: Request,
    response: Response,
    user: OptionalUser,
    service: ProfileService = Depends(get_profile_service),
) -> UpdateFormResponse:
    """Load name, email, phone, address and interests for editing."""
    controller = UpdateFlowController(service, user)
    notice = await controller.on_enter()
    return UpdateFormResponse(
        data=UpdateFormData.model_validate(controller.state),
        notice=_notice(notice, response),
    )


@router.patch(
    "",
    response_model=UpdateSubmitResponse,
    summary="Update profile fields",
    responses=STORE_FAILURE_RESPONSES,
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_profile(
    request: Request,
    response: Response,
    body: UpdateFormData,
    user: CurrentUser,
    service: ProfileService = Depends(get_profile_service),
) -> UpdateSubmitResponse:
    """Merge the non-blank fields into the stored profile."""
    controller = UpdateFlowController(service, user, state=UpdateFormState(**body.model_dump()))
    outcome, notice = await controller.on_submit()
    return UpdateSubmitResponse(
        outcome=UpdateOutcomeData.model_validate(outcome),
        notice=_notice(notice, response),
    )


@router.post(
    "/update-form/cancel",
    response_model=UpdateSubmitResponse,
    summary="Leave the update screen without saving",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def cancel_update(
    request: Request,
    user: OptionalUser,
    service: ProfileService = Depends(get_profile_service),
) -> UpdateSubmitResponse:
    controller = UpdateFlowController(service, user)
    return UpdateSubmitResponse(outcome=UpdateOutcomeData.model_validate(controller.on_cancel()))

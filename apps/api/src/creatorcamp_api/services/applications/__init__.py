"""Application lifecycle services."""

from .state_machine import (
    AccountBlockedError,
    AccountRestrictedError,
    AccountSuspendedError,
    AlreadyApprovedError,
    AlreadyRejectedError,
    AlreadyUploadedError,
    AmazonStorefrontRequiredError,
    ApplicationDeadlinePassedError,
    ApplicationForbiddenError,
    ApplicationNotFoundError,
    ApplicationStateError,
    ApplicationStateMachine,
    ApplicationTransition,
    BioLinkRequiredError,
    CampaignNotActiveError,
    DuplicateApplicationError,
    InvalidContentUrlError,
    InvalidTransitionError,
    OverrideReasonRequiredError,
    PaypalRequiredError,
    ProfileIncompleteError,
    ShippingDetailsRequiredError,
    StartingTierLimitError,
    SubmissionDeadlinePassedError,
    TerminalOverrideDisabledError,
    UploadNotAllowedError,
)

__all__ = [
    "AccountBlockedError",
    "AccountRestrictedError",
    "AccountSuspendedError",
    "AlreadyApprovedError",
    "AlreadyRejectedError",
    "AlreadyUploadedError",
    "AmazonStorefrontRequiredError",
    "ApplicationDeadlinePassedError",
    "ApplicationForbiddenError",
    "ApplicationNotFoundError",
    "ApplicationStateError",
    "ApplicationStateMachine",
    "ApplicationTransition",
    "BioLinkRequiredError",
    "CampaignNotActiveError",
    "DuplicateApplicationError",
    "InvalidContentUrlError",
    "InvalidTransitionError",
    "OverrideReasonRequiredError",
    "PaypalRequiredError",
    "ProfileIncompleteError",
    "ShippingDetailsRequiredError",
    "StartingTierLimitError",
    "SubmissionDeadlinePassedError",
    "TerminalOverrideDisabledError",
    "UploadNotAllowedError",
]

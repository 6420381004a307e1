"""FastAPI dependencies for accessing app state."""

from fastapi import Request

from persons_console.forms.person_form import PersonFormSubmitter
from persons_console.listing.controller import ListController
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.settings import Settings


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_controller(request: Request) -> ListController:
    """
    Get the list controller from request state.

    One controller lives for the whole application: it holds the operator's
    page, selection and background job across requests.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    ListController
        The application's list controller
    """
    return request.app.state.controller


def get_notifier(request: Request) -> NotificationCenter:
    """Get the notification center shared by the controller and the form."""
    return request.app.state.notifier


def get_form_submitter(request: Request) -> PersonFormSubmitter:
    """Get the person form submitter."""
    return request.app.state.form_submitter

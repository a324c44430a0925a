# File: caltodo/auth/google_auth.py
"""
Google API client construction.
Turns stored OAuth tokens into an authenticated Calendar API resource.
"""

from typing import Optional
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError

from caltodo.core.config_manager import Config
from caltodo.utils.logger import setup_logger

logger = setup_logger(__name__)


def credentials_from_tokens(
    access_token: Optional[str],
    refresh_token: Optional[str] = None
) -> Optional[Credentials]:
    """
    Build credentials from a user's stored tokens.

    Returns:
        Credentials object or None if no access token is stored
    """
    if not access_token:
        logger.warning("No access token stored for user")
        return None

    return Credentials(
        token=access_token,
        refresh_token=refresh_token,
        token_uri=Config.GOOGLE_TOKEN_URI,
        client_id=Config.GOOGLE_CLIENT_ID,
        client_secret=Config.GOOGLE_CLIENT_SECRET,
        scopes=Config.GOOGLE_SCOPES,
    )


def load_stored_credentials() -> Optional[Credentials]:
    """
    Load credentials from the token file, refreshing them when expired.

    Returns:
        Credentials object or None if authentication fails
    """
    if not Config.TOKEN_FILE.exists():
        logger.warning(f"No token file at {Config.TOKEN_FILE}")
        return None

    logger.debug(f"Loading existing token from {Config.TOKEN_FILE}")
    creds = Credentials.from_authorized_user_file(str(Config.TOKEN_FILE), Config.GOOGLE_SCOPES)

    if creds.valid:
        return creds

    if not (creds.expired and creds.refresh_token):
        logger.warning("Stored credentials are invalid and cannot be refreshed")
        return None

    logger.info("Refreshing expired credentials")
    try:
        creds.refresh(Request())
    except RefreshError as e:
        logger.error(f"Error refreshing token: {e}", exc_info=True)
        return None

    logger.debug("Saving refreshed credentials")
    with open(Config.TOKEN_FILE, "w") as token_file:
        token_file.write(creds.to_json())

    return creds


def build_calendar_resource(creds: Credentials) -> Optional[Resource]:
    """
    Build the Calendar v3 API resource.

    Returns:
        Calendar resource, or None if the discovery document cannot be loaded
    """
    try:
        logger.debug("Building Calendar API service")
        return build("calendar", "v3", credentials=creds, cache_discovery=False)
    except HttpError as err:
        logger.error(f"HTTP error occurred building calendar service: {err}", exc_info=True)
        return None


def get_calendar_service_for_tokens(
    access_token: Optional[str],
    refresh_token: Optional[str] = None
) -> Optional[Resource]:
    """Calendar resource for a user whose tokens are stored by the caller."""
    creds = credentials_from_tokens(access_token, refresh_token)
    if not creds:
        return None
    return build_calendar_resource(creds)


def get_calendar_service() -> Optional[Resource]:
    """
    Main function to get an authenticated Calendar resource from the token file.
    Called by 'scripts/reschedule.py'.
    """
    logger.info("Initializing Google Calendar service")

    creds = load_stored_credentials()
    if not creds:
        logger.error("Authentication failed: token.json is missing or invalid")
        return None

    return build_calendar_resource(creds)

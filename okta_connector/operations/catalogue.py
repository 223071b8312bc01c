"""Okta Users and Sessions API operations.

Static descriptor data only. See
http://developer.okta.com/docs/api/resources/users.html and
http://developer.okta.com/docs/api/resources/sessions.html for the
payloads each operation expects and returns.
"""

from typing import List

from okta_connector.operations.descriptor import (
    FROM_BODY,
    HttpMethod,
    OperationDescriptor,
    path_param,
    query_param,
)
from okta_connector.operations.registry import OperationRegistry

BASE_URI = "https://{host}/api/{version}"

# Okta caps pages at 200 server-side; the larger value asks for "everything"
DEFAULT_LIST_LIMIT = 10000

USER_ID = path_param("id")


def _op(name: str, method: HttpMethod, path: str, description: str, **kwargs) -> OperationDescriptor:
    return OperationDescriptor(
        name=name,
        uri_template=BASE_URI + path,
        method=method,
        description=description,
        **kwargs,
    )


OKTA_OPERATIONS: List[OperationDescriptor] = [
    # Users
    _op(
        "createUser", HttpMethod.POST, "/users",
        "Create a user, optionally activating it.",
        query_params=(query_param("activate", default=False),),
        body_argument="profile",
    ),
    _op(
        "getUser", HttpMethod.GET, "/users/{id}",
        "Fetch a user by id, login, or login shortname.",
        path_params=(USER_ID,),
    ),
    _op(
        "listUsers", HttpMethod.GET, "/users",
        "List users, by query string or filter expression.",
        query_params=(
            query_param("query", key="q"),
            query_param("limit", default=DEFAULT_LIST_LIMIT),
            query_param("filter"),
            query_param("after"),
        ),
    ),
    _op(
        "updateUser", HttpMethod.PUT, "/users/{id}",
        "Replace a user's profile and/or credentials.",
        path_params=(USER_ID,),
        body_argument="profile",
    ),
    _op(
        "getUserAppLinks", HttpMethod.GET, "/users/{id}/appLinks",
        "List application links assigned to a user.",
        path_params=(USER_ID,),
    ),
    _op(
        "getUserGroups", HttpMethod.GET, "/users/{id}/groups",
        "List groups a user belongs to.",
        path_params=(USER_ID,),
    ),

    # Lifecycle
    _op(
        "activateUser", HttpMethod.POST, "/users/{id}/lifecycle/activate",
        "Activate a STAGED user.",
        path_params=(USER_ID,),
        query_params=(query_param("send_email", key="sendEmail", default=True),),
    ),
    _op(
        "deactivateUser", HttpMethod.POST, "/users/{id}/lifecycle/deactivate",
        "Deactivate a user.",
        path_params=(USER_ID,),
    ),
    _op(
        "unlockUser", HttpMethod.POST, "/users/{id}/lifecycle/unlock",
        "Unlock a LOCKED_OUT user.",
        path_params=(USER_ID,),
    ),
    _op(
        "resetPassword", HttpMethod.POST, "/users/{id}/lifecycle/reset_password",
        "Generate a one-time token to reset a user's password.",
        path_params=(USER_ID,),
        query_params=(query_param("send_email", key="sendEmail", default=True),),
    ),
    _op(
        "expirePassword", HttpMethod.POST, "/users/{id}/lifecycle/expire_password",
        "Expire a user's password, optionally issuing a temporary one.",
        path_params=(USER_ID,),
        query_params=(query_param("temp_password", key="tempPassword", default=False),),
    ),
    _op(
        "forgotPassword", HttpMethod.POST, "/users/{id}/lifecycle/forgot_password",
        "Generate a one-time token to recover a forgotten password.",
        path_params=(USER_ID,),
        query_params=(query_param("send_email", key="sendEmail", default=True),),
    ),

    # Credentials
    _op(
        "passwordRecovery", HttpMethod.POST, "/users/{id}/credentials/forgot_password",
        "Set a new password after answering the recovery question.",
        path_params=(USER_ID,),
        body_argument="credentials",
    ),
    _op(
        "changePassword", HttpMethod.POST, "/users/{id}/credentials/change_password",
        "Change a password given the current one.",
        path_params=(USER_ID,),
        body_argument="passwords",
    ),
    _op(
        "changeRecoveryQuestion", HttpMethod.POST, "/users/{id}/credentials/change_recovery_question",
        "Change the recovery question given the current password.",
        path_params=(USER_ID,),
        body_argument="credentials",
    ),

    # Sessions
    _op(
        "authenticate", HttpMethod.POST, "/sessions",
        "Primary authentication with username/password credentials.",
        body_argument="credentials",
    ),
    _op(
        "createSession", HttpMethod.POST, "/sessions",
        "Create a session from a session token.",
        query_params=(query_param("additional_fields", key="additionalFields"),),
        body_argument="session_token",
    ),
    _op(
        "extendSession", HttpMethod.PUT, "/sessions/{sessionId}",
        "Validate and extend an existing session.",
        path_params=(path_param("session_id", key="sessionId", default=FROM_BODY),),
    ),
    _op(
        "closeSession", HttpMethod.PUT, "/sessions/{sessionId}",
        "Close a session (logout).",
        path_params=(path_param("session_id", key="sessionId", default=FROM_BODY),),
    ),
]


def build_default_registry() -> OperationRegistry:
    """Create a registry holding every Okta operation."""
    return OperationRegistry(OKTA_OPERATIONS)

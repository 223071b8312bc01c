"""Unit tests for the operation registry and the Okta catalogue."""

import pytest

from okta_connector.clients.exceptions import OperationNotFoundError, ValidationError
from okta_connector.operations.catalogue import (
    BASE_URI,
    DEFAULT_LIST_LIMIT,
    OKTA_OPERATIONS,
    build_default_registry,
)
from okta_connector.operations.descriptor import (
    CONFIG_PLACEHOLDERS,
    FROM_BODY,
    HttpMethod,
    OperationDescriptor,
    path_param,
    template_placeholders,
)
from okta_connector.operations.registry import OperationRegistry

EXPECTED_OPERATION_COUNT = 19


@pytest.fixture
def thing_descriptor():
    return OperationDescriptor(
        name="getThing",
        uri_template="https://{host}/api/{version}/things/{id}",
        method=HttpMethod.GET,
        path_params=(path_param("id"),),
    )


class TestOperationRegistry:
    """Test registration and lookup."""

    def test_register_and_lookup(self, thing_descriptor):
        registry = OperationRegistry()
        registry.register(thing_descriptor)

        assert registry.lookup("getThing") is thing_descriptor
        assert "getThing" in registry
        assert len(registry) == 1
        assert registry.names() == ["getThing"]
        assert list(registry) == [thing_descriptor]

    def test_register_from_mapping(self):
        registry = OperationRegistry()
        descriptor = registry.register({
            "name": "listThings",
            "uri_template": "https://{host}/api/{version}/things",
            "method": "GET",
        })
        assert registry.lookup("listThings") == descriptor

    def test_duplicate_name_rejected(self, thing_descriptor):
        registry = OperationRegistry([thing_descriptor])
        with pytest.raises(ValidationError, match="already registered"):
            registry.register(thing_descriptor)

    def test_unknown_method_rejected(self):
        registry = OperationRegistry()
        with pytest.raises(ValidationError):
            registry.register({
                "name": "patchThing",
                "uri_template": "https://{host}/api/{version}/things",
                "method": "PATCH",
            })
        assert len(registry) == 0

    def test_param_without_placeholder_rejected(self):
        registry = OperationRegistry()
        with pytest.raises(ValidationError):
            registry.register(OperationDescriptor(
                name="getThing",
                uri_template="https://{host}/api/{version}/things",
                method="GET",
                path_params=(path_param("id"),),
            ))
        assert "getThing" not in registry

    def test_lookup_unknown(self):
        registry = OperationRegistry()
        with pytest.raises(OperationNotFoundError) as exc_info:
            registry.lookup("missing")
        assert exc_info.value.name == "missing"


class TestOktaCatalogue:
    """Test the static Okta operation data."""

    def test_all_operations_register(self):
        registry = build_default_registry()
        assert len(registry) == EXPECTED_OPERATION_COUNT

    def test_placeholders_match_path_params(self):
        for descriptor in OKTA_OPERATIONS:
            tokens = set(template_placeholders(descriptor.uri_template)) - CONFIG_PLACEHOLDERS
            assert tokens == {param.key for param in descriptor.path_params}, descriptor.name

    def test_common_policy(self):
        for descriptor in OKTA_OPERATIONS:
            assert descriptor.uri_template.startswith(BASE_URI)
            assert descriptor.content_type == "application/json"
            assert descriptor.error_threshold == 207

    @pytest.mark.parametrize(
        "name,method,path",
        [
            ("createUser", "POST", "/users"),
            ("getUser", "GET", "/users/{id}"),
            ("listUsers", "GET", "/users"),
            ("updateUser", "PUT", "/users/{id}"),
            ("getUserAppLinks", "GET", "/users/{id}/appLinks"),
            ("getUserGroups", "GET", "/users/{id}/groups"),
            ("activateUser", "POST", "/users/{id}/lifecycle/activate"),
            ("deactivateUser", "POST", "/users/{id}/lifecycle/deactivate"),
            ("unlockUser", "POST", "/users/{id}/lifecycle/unlock"),
            ("resetPassword", "POST", "/users/{id}/lifecycle/reset_password"),
            ("expirePassword", "POST", "/users/{id}/lifecycle/expire_password"),
            ("forgotPassword", "POST", "/users/{id}/lifecycle/forgot_password"),
            ("passwordRecovery", "POST", "/users/{id}/credentials/forgot_password"),
            ("changePassword", "POST", "/users/{id}/credentials/change_password"),
            ("changeRecoveryQuestion", "POST", "/users/{id}/credentials/change_recovery_question"),
            ("authenticate", "POST", "/sessions"),
            ("createSession", "POST", "/sessions"),
            ("extendSession", "PUT", "/sessions/{sessionId}"),
            ("closeSession", "PUT", "/sessions/{sessionId}"),
        ],
    )
    def test_endpoint_table(self, name, method, path):
        descriptor = build_default_registry().lookup(name)
        assert descriptor.method.value == method
        assert descriptor.uri_template == BASE_URI + path

    def test_list_users_defaults(self):
        descriptor = build_default_registry().lookup("listUsers")
        params = {param.key: param for param in descriptor.query_params}

        assert list(params) == ["q", "limit", "filter", "after"]
        assert params["limit"].default == DEFAULT_LIST_LIMIT
        for key in ("q", "filter", "after"):
            assert not params[key].has_default

    def test_session_id_defaults_to_payload(self):
        registry = build_default_registry()
        for name in ("extendSession", "closeSession"):
            (param,) = registry.lookup(name).path_params
            assert param.key == "sessionId"
            assert param.default is FROM_BODY

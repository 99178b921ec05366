#
# client.py
# Client for the PassSlot pass management API
#

import io
import json
import logging
import os
import ssl
import threading
from contextlib import ExitStack
from typing import Any, Dict, Optional, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from fastapi import Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ValidationError

from passslot.api.responses import pkpass_response, redirect_response
from passslot.config import get_settings
from passslot.core.exceptions import (
    ConfigError,
    PassSlotApiError,
    TransportError,
    UnauthorizedError,
    ValidationFailedError,
)
from passslot.schemas.passes import ApiErrorBody, Pass, PassURL
from passslot.services.image_validator import ImagePath, ImageValidator, image_validator

logger = logging.getLogger(__name__)

PlaceholderValues = Dict[str, Union[str, int, float]]
ModelT = TypeVar("ModelT", bound=BaseModel)

# cacert.pem from https://curl.se/docs/caextract.html, used when shipped next to the package
BUNDLED_CA_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "cacert.pem")


def _log_request(request: httpx.Request) -> None:
    logger.debug(f"> {request.method} {request.url}")


def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug(f"< {response.status_code} {request.method} {request.url}")


def _ssl_verify(ca_bundle: Optional[str]) -> Union[ssl.SSLContext, bool]:
    """Verify against the configured or bundled CA file, else the default trust store."""
    cafile = ca_bundle
    if cafile is None and os.path.isfile(BUNDLED_CA_FILE):
        cafile = BUNDLED_CA_FILE
    if cafile:
        try:
            return ssl.create_default_context(cafile=cafile)
        except OSError as e:
            raise ConfigError(
                f"Cannot load CA bundle {cafile}",
                details={"setting": "PASSSLOT_CA_BUNDLE", "error": str(e)},
            )
    return True


class PassSlot:
    """
    Client for the PassSlot API.

    Creates passes from templates, downloads them and hands them over to
    the end user by download, redirect or email.

    Usage:
    engine = PassSlot.start(app_key)
    pass_ = engine.create_pass_from_template(6008004, {"Name": "John"}, {"thumbnail": "john.png"})
    pass_data = engine.download_pass(pass_)
    """

    VERSION = "0.2.0"
    USER_AGENT = f"PassSlotSDK-Python/{VERSION}"
    ENDPOINT = "https://api.passslot.com/v1"
    ACCEPT = "application/json, */*; q=0.01"

    # Shared instance handed out by start()
    _instance: Optional["PassSlot"] = None
    _instance_lock = threading.Lock()

    def __init__(
        self,
        app_key: Optional[str] = None,
        debug: Optional[bool] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        validator: Optional[ImageValidator] = None,
    ):
        settings = get_settings()
        self.app_key = app_key or settings.PASSSLOT_APP_KEY
        if not self.app_key:
            raise ConfigError("App Key required", details={"setting": "PASSSLOT_APP_KEY"})

        self.endpoint = self.ENDPOINT
        self.debug = settings.PASSSLOT_DEBUG if debug is None else debug
        self.image_validator = validator or image_validator

        event_hooks = {"request": [], "response": []}
        if self.debug:
            event_hooks = {"request": [_log_request], "response": [_log_response]}

        self._http = httpx.Client(
            auth=httpx.BasicAuth(self.app_key, ""),
            headers={"User-Agent": self.USER_AGENT},
            follow_redirects=False,
            verify=_ssl_verify(settings.PASSSLOT_CA_BUNDLE),
            timeout=httpx.Timeout(timeout if timeout is not None else settings.PASSSLOT_TIMEOUT),
            transport=transport,
            event_hooks=event_hooks,
        )

    @classmethod
    def start(cls, app_key: Optional[str] = None) -> "PassSlot":
        """
        Return the shared PassSlot instance, creating it on first use.

        Only the first call configures the instance. Later calls return it
        unchanged, even when they pass a different app key.
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(app_key)
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance so the next start() creates a new one."""
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.close()
            cls._instance = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PassSlot":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def create_pass_from_template(
        self,
        template_id: int,
        values: Optional[PlaceholderValues] = None,
        images: Optional[Dict[str, ImagePath]] = None,
    ) -> Pass:
        """
        Create a pass based on an existing template.

        Args:
            template_id: Template ID
            values: Values for the placeholders, e.g. {"Name": "John", "Balance": 20.50}
            images: Images for the pass keyed by image type, e.g. {"icon": "icon.png",
                "icon2x": "icon@2x.png"}. Invalid images are skipped with a warning.

        Raises:
            PassSlotApiError: The API rejected the request
        """
        resource = f"/templates/{template_id}/pass"
        return self._create_pass(resource, values, images)

    def create_pass_from_template_with_name(
        self,
        template_name: str,
        values: Optional[PlaceholderValues] = None,
        images: Optional[Dict[str, ImagePath]] = None,
    ) -> Pass:
        """Same as create_pass_from_template, addressing the template by name."""
        resource = f"/templates/names/{quote(template_name, safe='')}/pass"
        return self._create_pass(resource, values, images)

    def download_pass(self, pass_: Pass) -> bytes:
        """Download the signed .pkpass file."""
        return self._rest_call("GET", pass_.resource)

    def output_pass(
        self, pass_: Union[Pass, bytes], file_name: str = "pass.pkpass"
    ) -> Response:
        """Build a download response for the pass, fetching it first when given a Pass."""
        if isinstance(pass_, Pass):
            pass_ = self.download_pass(pass_)
        return pkpass_response(pass_, file_name)

    def get_pass_url(self, pass_: Pass) -> str:
        """Return the pass preview URL, asking the API only if the pass does not carry it."""
        if pass_.url:
            return pass_.url
        data = self._rest_call("GET", f"{pass_.resource}/url")
        return self._decode(PassURL, data).url

    def redirect_to_pass(self, pass_: Pass) -> RedirectResponse:
        return redirect_response(self.get_pass_url(pass_))

    def email_pass(self, pass_: Pass, email: str) -> None:
        """Email the pass to the given address."""
        self._rest_call("POST", f"{pass_.resource}/email", {"email": email})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create_pass(
        self,
        resource: str,
        values: Optional[PlaceholderValues],
        images: Optional[Dict[str, ImagePath]],
    ) -> Pass:
        values = values or {}

        if not images:
            return self._decode(Pass, self._rest_call("POST", resource, values))

        attachments = self.image_validator.filter_valid(images)

        # Image files stay open only for the duration of the request
        with ExitStack() as stack:
            content = {}
            for attachment in attachments:
                image_file = stack.enter_context(open(attachment.path, "rb"))
                content[attachment.slot] = (attachment.filename, image_file, attachment.content_type)

            values_file = io.BytesIO(json.dumps(values).encode("utf-8"))
            content["values"] = ("values.json", values_file, "application/json")

            data = self._rest_call("POST", resource, content, multipart=True)

        return self._decode(Pass, data)

    def _decode(self, model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise PassSlotApiError(
                "Unexpected response from PassSlot",
                details={"error": str(e)},
            )

    def _rest_call(
        self,
        method: str,
        resource: str,
        content: Any = None,
        multipart: bool = False,
    ) -> Any:
        """
        Perform an API call.

        Args:
            method: HTTP method, e.g. GET or POST
            resource: Resource path below the endpoint
            content: Body of the call, multipart parts when multipart is set
            multipart: Whether content holds multipart parts

        Returns:
            Decoded JSON for JSON responses, the raw body otherwise

        Raises:
            ValidationFailedError: 422
            UnauthorizedError: 401
            PassSlotApiError: any other non-2xx status
            TransportError: the API could not be reached
        """
        url = f"{self.endpoint}{resource}"
        headers = {"Accept": self.ACCEPT}
        kwargs = {}

        if method in ("POST", "PUT"):
            if multipart:
                kwargs["files"] = content
            else:
                if content is None:
                    content = {}
                kwargs["content"] = json.dumps(content).encode("utf-8")
                headers["Content-Type"] = "application/json"

        try:
            response = self._http.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(
                "PassSlot API request timed out",
                details={"error_type": "timeout", "error": str(e)},
            )
        except httpx.RequestError as e:
            raise TransportError(
                "Failed to connect to PassSlot API",
                details={"error_type": "connection", "error": str(e)},
            )

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        status_code = response.status_code

        if status_code == 422:
            raise self._validation_error(response)

        if status_code == 401:
            raise UnauthorizedError()

        if status_code < 200 or status_code >= 300:
            body = self._parse_error_body(response)
            message = body.message if body and body.message else response.text
            raise PassSlotApiError(
                message,
                status_code,
                details={"response": response.text[:500]},
            )

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise PassSlotApiError(
                    "Unexpected response from PassSlot",
                    status_code,
                    details={"error": str(e), "response": response.text[:500]},
                )

        return response.content

    def _validation_error(self, response: httpx.Response) -> ValidationFailedError:
        body = self._parse_error_body(response)
        if body is None:
            return ValidationFailedError("Validation Failed")

        message = body.message
        for error in body.errors:
            message += f"; {error.field}: {', '.join(error.reasons)}"
        return ValidationFailedError(message, errors=body.errors)

    @staticmethod
    def _parse_error_body(response: httpx.Response) -> Optional[ApiErrorBody]:
        try:
            return ApiErrorBody.model_validate_json(response.content)
        except ValidationError:
            return None


def start(app_key: Optional[str] = None) -> PassSlot:
    return PassSlot.start(app_key)


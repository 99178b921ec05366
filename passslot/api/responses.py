#
# responses.py
# HTTP responses that hand a pass over to the caller's own client
#

from fastapi import Response
from fastapi.responses import RedirectResponse

PKPASS_MEDIA_TYPE = "application/vnd.apple.pkpass"


def pkpass_response(pass_data: bytes, file_name: str = "pass.pkpass") -> Response:
    """
    Build a download response for a .pkpass file.

    Content-Length is filled in from the body.
    """
    return Response(
        content=pass_data,
        media_type=PKPASS_MEDIA_TYPE,
        headers={
            "Pragma": "no-cache",
            "Content-Disposition": f'attachment; filename="{file_name}"',
        },
    )


def redirect_response(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)

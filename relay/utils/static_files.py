from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope


class SPAStaticFiles(StaticFiles):
    """
    Static files for a single-page application.

    Paths without a matching file are answered with ``index.html`` so the
    editor's client-side routes load the bundle.
    """

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as ex:
            if ex.status_code != 404:
                raise
            return await super().get_response("index.html", scope)

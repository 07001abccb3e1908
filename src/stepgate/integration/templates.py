r"""Mapping templates for the StartSyncExecution integration.

All templates are compile-time string constants, except the request
template, which embeds the backend's invocation ARN.

Request (``application/json``)::

    {"input": "$util.escapeJavaScript($input.json('$')).replaceAll("\\'", "'")",
     "stateMachineArn": "<arn>"}

The whole request body is re-serialized and escaped into a string literal,
so quotes and control characters in the body cannot break out of the
``input`` field. ``escapeJavaScript`` also turns ``'`` into ``\'``, which
JSON rejects; the ``replaceAll`` puts the bare apostrophe back.

Responses:

- success (no selection pattern): if ``$.status`` is ``FAILED`` the status
  is overridden to 500 and ``error``/``cause`` are emitted, else the
  execution's ``$.output`` passes through verbatim. ``error`` and ``cause``
  are interpolated unescaped; ``SUCCESS_TEMPLATE_STRICT`` emits them as JSON
  values instead.
- ``4\d{2}``: fixed ``{"error": "Bad input!"}``.
- ``5\d{2}``: ``"error": $input.path('$.error')``. This is a JSON fragment,
  not an object; ``SERVER_ERROR_TEMPLATE_STRICT`` is the well-formed variant.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stepgate.integration.backend import BackendHandle

JSON_CONTENT_TYPE = "application/json"

REQUEST_TEMPLATE = (
    '{"input": "$util.escapeJavaScript($input.json(\'$\'))'
    '.replaceAll("\\\\\'", "\'")", '
    '"stateMachineArn": "%(state_machine_arn)s"}'
)

SUCCESS_TEMPLATE = """#set($inputRoot = $input.path('$'))
#if($input.path('$.status').toString().equals("FAILED"))
#set($context.responseOverride.status = 500)
{
  "error": "$input.path('$.error')",
  "cause": "$input.path('$.cause')"
}
#else
$input.path('$.output')
#end
"""

SUCCESS_TEMPLATE_STRICT = """#set($inputRoot = $input.path('$'))
#if($input.path('$.status').toString().equals("FAILED"))
#set($context.responseOverride.status = 500)
{
  "error": $input.json('$.error'),
  "cause": $input.json('$.cause')
}
#else
$input.path('$.output')
#end
"""

CLIENT_ERROR_TEMPLATE = '{"error": "Bad input!"}'

SERVER_ERROR_TEMPLATE = "\"error\": $input.path('$.error')"

SERVER_ERROR_TEMPLATE_STRICT = '{"error": $input.json(\'$.error\')}'


def request_template_string(handle: BackendHandle) -> str:
    """Render the request template for ``handle``.

    The ARN is embedded as-is; placeholders are left for the deployment
    system to substitute.
    """
    return REQUEST_TEMPLATE % {"state_machine_arn": handle.invocation_arn}


def request_templates(handle: BackendHandle) -> dict[str, str]:
    """Content-type keyed request templates for ``handle``."""
    return {JSON_CONTENT_TYPE: request_template_string(handle)}

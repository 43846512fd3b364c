from fastapi.responses import HTMLResponse

from palm_proxy.cors import CORS_HEADERS

LANDING_PAGE_HTML = """
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>Google PaLM API proxy</title>
</head>
<body>
  <h1 id="google-palm-api-proxy">Google PaLM API proxy</h1>
  <p>This service is a reverse proxy for the Google generative language API.
  It works around restrictions such as regional availability of the API.</p>
  <p>You may need it when:</p>
  <ol>
    <li>Calls to the Google PaLM API fail with "User location is not supported for the API use"</li>
    <li>You want to customise requests sent to the Google PaLM API</li>
  </ol>
  <p>Point your client at this host instead of <code>generativelanguage.googleapis.com</code>;
  paths and query parameters are forwarded unchanged.</p>
</body>
</html>
"""


def landing_page_response() -> HTMLResponse:
    """Static page served at ``/``; never touches the upstream."""
    return HTMLResponse(
        content=LANDING_PAGE_HTML,
        headers=dict(CORS_HEADERS),
        media_type="text/html",
    )

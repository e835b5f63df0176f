from .context import load_context


class AppContextMiddleware:
    """Attach the profile context, read once from the session, to each request."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.app_context = load_context(request.session)
        return self.get_response(request)

from rest_framework.response import Response


def table_response(request, serializer_class, fetch):
    """Validate the table query string and return one page from ``fetch``."""
    s = serializer_class(data=request.query_params)
    s.is_valid(raise_exception=True)
    result = fetch(s.validated_data)
    return Response({'ok': True, **result})

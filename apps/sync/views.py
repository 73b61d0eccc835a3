from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .authentication import HasSyncApiKey, SyncApiKeyAuthentication
from .models import PotentialCustomer
from .serializers import PotentialCustomerOutSerializer, SyncPayloadSerializer
from .services import last_sync_time, run_sync


def _now_iso():
    return timezone.now().isoformat()


@extend_schema(request=SyncPayloadSerializer, tags=["sync"])
@api_view(["POST"])
@authentication_classes([SyncApiKeyAuthentication])
@permission_classes([HasSyncApiKey])
def sync_push(request):
    serializer = SyncPayloadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = run_sync(serializer.validated_data)
    return Response(result.as_dict())


@extend_schema(tags=["sync"])
@api_view(["GET"])
@authentication_classes([SyncApiKeyAuthentication])
@permission_classes([HasSyncApiKey])
def sync_status(request):
    return Response({"status": "ok", "timestamp": _now_iso()})


@extend_schema(tags=["sync"])
@api_view(["POST"])
@authentication_classes([SyncApiKeyAuthentication])
@permission_classes([HasSyncApiKey])
def sync_test(request):
    return Response({"success": True, "message": "Connection successful"})


@extend_schema(tags=["sync"])
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def sync_last(request):
    latest = last_sync_time()
    return Response({"lastSyncAt": latest.isoformat() if latest else None})


@extend_schema(tags=["sync"], responses=PotentialCustomerOutSerializer(many=True))
@api_view(["GET"])
@authentication_classes([SyncApiKeyAuthentication])
@permission_classes([HasSyncApiKey])
def potential_customers(request):
    """Leads for the desktop app, newest first. `?status=pending` narrows the list."""
    queryset = PotentialCustomer.objects.all()
    status = request.query_params.get("status")
    if status:
        queryset = queryset.filter(status=status)
    data = PotentialCustomerOutSerializer(queryset, many=True).data
    return Response({"data": data, "total": len(data)})

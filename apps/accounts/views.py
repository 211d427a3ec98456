import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from apps.accounts.models import AdminMembership, StaffRole
from apps.accounts.serializers import AdminCreateSerializer, AdminMembershipSerializer
from apps.accounts.services import is_owner_email, resolve_principal
from apps.audit.services import record_audit
from apps.common.exceptions import Conflict
from apps.common.permissions import StaffRolePermission

logger = logging.getLogger(__name__)
User = get_user_model()


class AdminCheckView(generics.GenericAPIView):
    permission_classes = [StaffRolePermission]
    required_role = StaffRole.MODERATOR

    def get(self, request):
        principal = resolve_principal(request)
        return Response({"is_admin": True, "role": principal.role.value, "email": principal.email})


class AdminListCreateView(generics.GenericAPIView):
    permission_classes = [StaffRolePermission]
    required_role = StaffRole.SUPER_ADMIN
    serializer_class = AdminCreateSerializer

    def get(self, request):
        memberships = AdminMembership.objects.select_related("user").order_by("created_at")
        results = AdminMembershipSerializer(memberships, many=True).data
        listed = {(row["email"] or "").lower() for row in results}
        owners = [
            {"id": None, "user_id": None, "email": email, "role": StaffRole.OWNER.value, "is_owner": True}
            for email in settings.OWNER_EMAILS
            if email not in listed
        ]
        return Response(owners + list(results))

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]
        role = serializer.validated_data["role"]

        if is_owner_email(email):
            raise ValidationError({"email": "Owners are configured by the allowlist and cannot be added."})
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise NotFound("User not found. They must sign up first.")

        with transaction.atomic():
            membership, created = AdminMembership.objects.get_or_create(
                user=user,
                defaults={"role": role, "created_by": request.user},
            )
        if not created:
            raise Conflict("User is already an admin.")

        record_audit(
            actor=request.user,
            action="admins.add",
            target_type="admin",
            target_id=user.pk,
            details={"email": user.email, "role": role},
            request=request,
        )
        logger.info("User %s granted %s by %s", user.email, role, request.user.email)
        return Response(AdminMembershipSerializer(membership).data, status=status.HTTP_201_CREATED)


class AdminDestroyView(generics.GenericAPIView):
    permission_classes = [StaffRolePermission]
    required_role = StaffRole.SUPER_ADMIN

    def delete(self, request, user_id):
        user = get_object_or_404(User, pk=user_id)
        if is_owner_email(user.email):
            raise ValidationError({"user_id": "Cannot remove owner."})

        deleted, _ = AdminMembership.objects.filter(user=user).delete()
        if not deleted:
            raise NotFound("User is not an admin.")

        record_audit(
            actor=request.user,
            action="admins.remove",
            target_type="admin",
            target_id=user.pk,
            details={"email": user.email},
            request=request,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

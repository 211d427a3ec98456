from rest_framework import status
from rest_framework.exceptions import APIException

from apps.promos.services import PromoRejection


class PromoCodeRejected(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Promo code rejected."
    default_code = "promo_rejected"

    def __init__(self, rejection, not_found_status=status.HTTP_404_NOT_FOUND):
        super().__init__(detail=rejection.message, code=rejection.reason)
        self.default_code = rejection.reason
        if rejection.reason == PromoRejection.NOT_FOUND:
            self.status_code = not_found_status

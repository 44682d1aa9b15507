from core_backend.exceptions import ValidationError


def validate_payload(serializer_class, data, **kwargs):
    """
    Run a DRF serializer over an input record and return its validated data.

    Serializer errors are re-raised as core_backend ValidationError so services
    never leak rest_framework exceptions to their callers.
    """
    serializer = serializer_class(data=data, **kwargs)
    if not serializer.is_valid():
        raise ValidationError(
            f"Invalid {serializer_class.__name__.replace('Serializer', '')} payload",
            details=serializer.errors,
        )
    return serializer.validated_data

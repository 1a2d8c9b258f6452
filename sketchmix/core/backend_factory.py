"""Factory for creating stylizer backend instances."""

import logging
from typing import Dict, Optional, Type

from sketchmix.backends.openai import OpenAIStylizer
from sketchmix.backends.replicate import ReplicateStylizer
from sketchmix.core.base_backend import ImageStylizer

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory class for creating image stylization backends.

    Stage 1 can run on more than one provider; the factory maps a configured
    backend name to its implementation.
    """

    _stylizers: Dict[str, Type[ImageStylizer]] = {
        "openai": OpenAIStylizer,
        "replicate": ReplicateStylizer,
    }

    @classmethod
    def create_stylizer(
        cls,
        backend_type: str,
        api_key: Optional[str],
        model: Optional[str] = None,
        **options
    ) -> ImageStylizer:
        """Create a stylizer instance.

        Args:
            backend_type: "openai" or "replicate"
            api_key: API key for the provider
            model: Optional model identifier
            **options: Extra keyword arguments for the backend constructor

        Returns:
            An instance of the requested backend

        Raises:
            ValueError: If backend_type is not supported or the API key is missing
        """
        backend_type_lower = backend_type.lower()

        if backend_type_lower not in cls._stylizers:
            supported = ", ".join(cls.get_supported_backends())
            raise ValueError(
                f"Unsupported backend type: '{backend_type}'. "
                f"Supported backends: {supported}"
            )

        if not api_key:
            raise ValueError(f"API key is required for {backend_type} backend")

        logger.info(f"Creating {backend_type_lower} stylizer backend")
        backend_class = cls._stylizers[backend_type_lower]
        return backend_class(api_key=api_key, model=model, **options)

    @classmethod
    def get_supported_backends(cls) -> list[str]:
        return sorted(cls._stylizers)

    @classmethod
    def is_supported(cls, backend_type: str) -> bool:
        return backend_type.lower() in cls._stylizers

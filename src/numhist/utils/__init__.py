from .encoding import (
    NON_FINITE_TOKENS,
    EncodedFloat,
    decode_float,
    encode_float,
    is_real_number,
    to_float,
)
from .pydantic_utils import (
    PydanticClassRegistryMixin,
    ReloadableBaseModel,
    StandardBaseModel,
)
from .registry import RegistryMixin
from .reservoir import (
    TwoSampleTestResult,
    default_generator,
    merge_sampled_streams,
    seed_default_generator,
    two_sample_test,
    uniformly_sample_array,
    uniformly_sample_stream,
)

__all__ = [
    "NON_FINITE_TOKENS",
    "EncodedFloat",
    "PydanticClassRegistryMixin",
    "RegistryMixin",
    "ReloadableBaseModel",
    "StandardBaseModel",
    "TwoSampleTestResult",
    "decode_float",
    "default_generator",
    "encode_float",
    "is_real_number",
    "merge_sampled_streams",
    "seed_default_generator",
    "to_float",
    "two_sample_test",
    "uniformly_sample_array",
    "uniformly_sample_stream",
]

"""Client-role scenarios: probes run against an MCP server under test."""

from .json_schema import JsonSchema2020_12Probe
from .lifecycle import ServerInitializeProbe
from .prompts import (
    PromptsGetEmbeddedResourceProbe,
    PromptsGetSimpleProbe,
    PromptsGetWithArgsProbe,
    PromptsGetWithImageProbe,
    PromptsListProbe,
)
from .tools import (
    ToolsCallAudioProbe,
    ToolsCallElicitationProbe,
    ToolsCallEmbeddedResourceProbe,
    ToolsCallErrorProbe,
    ToolsCallImageProbe,
    ToolsCallMixedContentProbe,
    ToolsCallSamplingProbe,
    ToolsCallSimpleTextProbe,
    ToolsCallWithLoggingProbe,
    ToolsCallWithProgressProbe,
    ToolsListProbe,
)
from .utils import CompletionCompleteProbe, LoggingSetLevelProbe

ALL_PROBES = (
    ServerInitializeProbe,
    ToolsListProbe,
    ToolsCallSimpleTextProbe,
    ToolsCallImageProbe,
    ToolsCallMixedContentProbe,
    ToolsCallAudioProbe,
    ToolsCallEmbeddedResourceProbe,
    ToolsCallErrorProbe,
    ToolsCallWithLoggingProbe,
    ToolsCallWithProgressProbe,
    ToolsCallSamplingProbe,
    ToolsCallElicitationProbe,
    PromptsListProbe,
    PromptsGetSimpleProbe,
    PromptsGetWithArgsProbe,
    PromptsGetEmbeddedResourceProbe,
    PromptsGetWithImageProbe,
    LoggingSetLevelProbe,
    CompletionCompleteProbe,
    JsonSchema2020_12Probe,
)

__all__ = [
    "ALL_PROBES",
    "CompletionCompleteProbe",
    "JsonSchema2020_12Probe",
    "LoggingSetLevelProbe",
    "PromptsGetEmbeddedResourceProbe",
    "PromptsGetSimpleProbe",
    "PromptsGetWithArgsProbe",
    "PromptsGetWithImageProbe",
    "PromptsListProbe",
    "ServerInitializeProbe",
    "ToolsCallAudioProbe",
    "ToolsCallElicitationProbe",
    "ToolsCallEmbeddedResourceProbe",
    "ToolsCallErrorProbe",
    "ToolsCallImageProbe",
    "ToolsCallMixedContentProbe",
    "ToolsCallSamplingProbe",
    "ToolsCallSimpleTextProbe",
    "ToolsCallWithLoggingProbe",
    "ToolsCallWithProgressProbe",
    "ToolsListProbe",
]

from infrastructure.flows.base_loader import FlowLoaderBase
from infrastructure.flows.file_finder import FlowFileFinder
from infrastructure.flows.json_loader import JsonFlowLoader
from infrastructure.flows.loader_registry import FlowLoaderRegistry
from infrastructure.flows.rule_codec import FlowLoadError, NavigationRuleCodec
from infrastructure.flows.yaml_loader import YamlFlowLoader

__all__ = [
    "FlowLoadError",
    "FlowLoaderBase",
    "FlowFileFinder",
    "FlowLoaderRegistry",
    "JsonFlowLoader",
    "NavigationRuleCodec",
    "YamlFlowLoader",
]

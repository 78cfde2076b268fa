"""Chain registry for mapping chain names to adapter classes."""

from typing import Type

from cineboxd.chains.base import BaseChain
from cineboxd.chains.cineville import CinevilleChain
from cineboxd.chains.pathe import PatheChain
from cineboxd.services.metadata_enricher import MetadataEnricher

# Registry mapping chain names to adapter classes, in merge order
CHAIN_REGISTRY: dict[str, Type[BaseChain]] = {
    "cineville": CinevilleChain,
    "pathe": PatheChain,
}


def build_chains(enricher: MetadataEnricher) -> list[BaseChain]:
    """Instantiate every registered chain adapter."""
    return [chain_class(enricher) for chain_class in CHAIN_REGISTRY.values()]


__all__ = [
    "CHAIN_REGISTRY",
    "build_chains",
    "BaseChain",
    "CinevilleChain",
    "PatheChain",
]

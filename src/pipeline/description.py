# src/pipeline/description.py — v1
"""Stage descriptors: what to build, without building it yet.

A description pairs a component class with its constructor parameters.
The pipeline runner calls create() when the pipeline is assembled, so
construction errors of the component surface there, unwrapped.

Chains are kept flat: appending a stage to a chain yields a longer
chain, never a chain nested inside another one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from cascache.pipeline.stages import BaseReader, BaseStage, StageChain


@dataclass(frozen=True)
class ReaderDescription:
    """Deferred construction of a BaseReader."""

    component: type[BaseReader]
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.component.__name__

    def create(self) -> BaseReader:
        return self.component(**self.params)


@dataclass(frozen=True)
class StageDescription:
    """Deferred construction of a single BaseStage."""

    component: type[BaseStage]
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.component.__name__

    @property
    def steps(self) -> tuple[StageDescription, ...]:
        return (self,)

    def create(self) -> BaseStage:
        return self.component(**self.params)


@dataclass(frozen=True)
class ChainDescription:
    """Ordered sequence of stage descriptions built into a StageChain."""

    steps: tuple[StageDescription, ...] = ()

    @property
    def name(self) -> str:
        return " -> ".join(self.names) or "StageChain"

    @property
    def names(self) -> list[str]:
        return [step.name for step in self.steps]

    def create(self) -> StageChain:
        return StageChain(step.create() for step in self.steps)

    def __len__(self) -> int:
        return len(self.steps)


PreprocessingDescription = Union[StageDescription, ChainDescription]


def create_reader_description(
    component: type[BaseReader], **params: Any
) -> ReaderDescription:
    """Describe a reader to be instantiated with the given parameters."""
    return ReaderDescription(component=component, params=params)


def create_stage_description(
    component: type[BaseStage], **params: Any
) -> StageDescription:
    """Describe a stage to be instantiated with the given parameters."""
    return StageDescription(component=component, params=params)


def create_chain_description(
    *descriptions: PreprocessingDescription,
) -> ChainDescription:
    """Concatenate stages and chains into one flat chain.

    Example:
        chain = create_chain_description(tokenizer, create_stage_description(
            XmiWriter, target_location=cache_dir))
        chain.names  # ['Tokenizer', 'XmiWriter']
    """
    steps: list[StageDescription] = []
    for description in descriptions:
        steps.extend(description.steps)
    return ChainDescription(steps=tuple(steps))

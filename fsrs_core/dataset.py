from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

import torch

from fsrs_core.types import TrainingItem


@dataclass
class ItemBatch:
    """Training items of one sequence length, laid out column-wise."""

    t_history: torch.Tensor  # [seq_len - 1, batch]
    r_history: torch.Tensor  # [seq_len - 1, batch]
    delta_t: torch.Tensor  # [batch]
    labels: torch.Tensor  # [batch]

    def __len__(self) -> int:
        return int(self.labels.shape[0])

    def select(self, idx: torch.Tensor) -> "ItemBatch":
        return ItemBatch(
            t_history=self.t_history.index_select(1, idx),
            r_history=self.r_history.index_select(1, idx),
            delta_t=self.delta_t.index_select(0, idx),
            labels=self.labels.index_select(0, idx),
        )


def _stack_items(
    items: Sequence[TrainingItem], device: torch.device, dtype: torch.dtype
) -> ItemBatch:
    t_history = torch.tensor(
        [[review.elapsed_days for review in item.history] for item in items],
        dtype=dtype,
        device=device,
    ).T
    r_history = torch.tensor(
        [[int(review.rating) for review in item.history] for item in items],
        dtype=torch.long,
        device=device,
    ).T
    delta_t = torch.tensor(
        [item.target.elapsed_days for item in items], dtype=dtype, device=device
    )
    labels = torch.tensor([item.label for item in items], dtype=dtype, device=device)
    return ItemBatch(t_history, r_history, delta_t, labels)


class TrainingSet:
    """
    Training items tensorised once and grouped by length, so a batch never
    needs padding.
    """

    def __init__(
        self,
        items: Sequence[TrainingItem],
        *,
        device: Optional[torch.device] = None,
        dtype: torch.dtype = torch.float32,
    ) -> None:
        self.device = device or torch.device("cpu")
        self.dtype = dtype
        grouped: dict[int, list[TrainingItem]] = defaultdict(list)
        for item in items:
            grouped[len(item)].append(item)
        self.groups = [
            _stack_items(grouped[length], self.device, dtype)
            for length in sorted(grouped)
        ]
        self.size = len(items)

    def __len__(self) -> int:
        return self.size

    def full_batches(self) -> Iterator[ItemBatch]:
        return iter(self.groups)

    def batches(
        self, batch_size: int, *, generator: Optional[torch.Generator] = None
    ) -> list[ItemBatch]:
        out: list[ItemBatch] = []
        for group in self.groups:
            count = len(group)
            if generator is None:
                order = torch.arange(count)
            else:
                order = torch.randperm(count, generator=generator)
            for start in range(0, count, batch_size):
                idx = order[start : start + batch_size].to(self.device)
                out.append(group.select(idx))
        if generator is not None:
            perm = torch.randperm(len(out), generator=generator).tolist()
            out = [out[i] for i in perm]
        return out

    def batch_count(self, batch_size: int) -> int:
        return sum(-(-len(group) // batch_size) for group in self.groups)


__all__ = ["ItemBatch", "TrainingSet"]

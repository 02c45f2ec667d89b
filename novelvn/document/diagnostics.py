from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List

from .model import Novel


@dataclass
class Diagnostic:
    severity: str  # "error" | "warning"
    message: str
    location: str | None = None


def _duplicates(ids: Iterable[str]) -> List[str]:
    counts = Counter(ids)
    return sorted(k for k, n in counts.items() if n > 1)


def find_problems(novel: Novel) -> list[Diagnostic]:
    """Report data defects that playback silently degrades around."""
    diags: list[Diagnostic] = []
    if not novel.scenes:
        diags.append(Diagnostic("error", "Novel has no scenes; playback cannot start"))
        return diags

    for sid in _duplicates(sc.id for sc in novel.scenes):
        diags.append(Diagnostic("warning", f"Duplicate scene id '{sid}'; choices resolve to the first one"))
    for cid in _duplicates(ch.id for ch in novel.characters):
        diags.append(Diagnostic("warning", f"Duplicate character id '{cid}'"))

    scene_ids = {sc.id for sc in novel.scenes}
    for i, scene in enumerate(novel.scenes):
        where = f"scenes[{i}]"
        if not scene.dialogues:
            diags.append(Diagnostic("warning", f"Scene '{scene.name or scene.id}' has no dialogues", where))
        for did in _duplicates(d.id for d in scene.dialogues):
            diags.append(Diagnostic("warning", f"Duplicate dialogue id '{did}'", where))
        for j, dlg in enumerate(scene.dialogues):
            dwhere = f"{where}.dialogues[{j}]"
            speaker = novel.character(dlg.character_id)
            if dlg.character_id and speaker is None:
                diags.append(Diagnostic("warning", f"Unknown speaker '{dlg.character_id}'; shown as narrator", dwhere))
            if dlg.sprite_id:
                if dlg.character_id is None:
                    diags.append(Diagnostic("warning", "Sprite set on a narrator line is ignored", dwhere))
                elif speaker is not None and speaker.sprite(dlg.sprite_id) is None:
                    diags.append(Diagnostic(
                        "warning",
                        f"Sprite '{dlg.sprite_id}' not found on '{speaker.name or speaker.id}'; default avatar used",
                        dwhere,
                    ))
            for k, ch in enumerate(dlg.choices):
                if ch.target_scene_id not in scene_ids:
                    diags.append(Diagnostic(
                        "error",
                        f"Choice '{ch.text}' targets missing scene '{ch.target_scene_id}'",
                        f"{dwhere}.choices[{k}]",
                    ))
    return diags


def has_errors(diags: Iterable[Diagnostic]) -> bool:
    return any(d.severity == "error" for d in diags)

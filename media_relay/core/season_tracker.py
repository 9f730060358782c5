"""
Season and episode diffing for series requests.

Both functions are pure: they take the notified-state stored on a request and
one availability snapshot, and return what to announce plus the new state.
The new state only ever grows: seasons and episodes are never removed and the
season total never goes down.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass
class SeasonUpdate:
    requested_available: List[int] = field(default_factory=list)
    released_beyond_request: List[int] = field(default_factory=list)
    announced: List[int] = field(default_factory=list)
    notified_seasons: List[int] = field(default_factory=list)
    total_seasons: int = 0
    total_changed: bool = False
    all_requested_available: bool = False

    @property
    def notified_changed(self) -> bool:
        return bool(self.requested_available or self.released_beyond_request)

    @property
    def has_changes(self) -> bool:
        return self.notified_changed or self.total_changed


@dataclass
class EpisodeUpdate:
    new_episodes: List[Tuple[int, int]] = field(default_factory=list)
    notified_episodes: Dict[int, List[int]] = field(default_factory=dict)


def reconcile_seasons(
    selected_seasons: Iterable[int],
    notified_seasons: Iterable[int],
    previous_total: Optional[int],
    available_seasons: Iterable[int],
    current_total: Optional[int],
) -> SeasonUpdate:
    """
    Compare la disponibilité par saison avec ce qui a déjà été notifié.

    Une sélection vide signifie "toutes les saisons": chaque saison disponible
    est alors annoncée comme demandée, et la demande est complète quand le
    nombre de saisons disponibles atteint le total connu. Le total est un
    nombre de saisons et non un numéro, ce qui couvre les séries numérotées
    par année (2019, 2020...).

    Les saisons annoncées sont numérotées previous+1..current: la série est
    supposée numérotée 1..N. Pour une numérotation par année le nombre de
    saisons annoncées reste juste mais pas leurs numéros.
    """
    selected = sorted(set(selected_seasons))
    notified = set(notified_seasons)
    available = set(available_seasons)
    previous = previous_total or 0
    current = current_total or 0

    newly_available = sorted(available - notified)

    if selected:
        last_selected = max(selected)
        requested_available = [s for s in newly_available if s in selected]
        released = [s for s in newly_available if s not in selected and s > last_selected]
        all_requested = all(s in available for s in selected)
    else:
        requested_available = newly_available
        released = []
        known_total = max(previous, current)
        numbered = {s for s in available if s > 0}
        all_requested = known_total > 0 and len(numbered) >= known_total

    # Première valeur connue: on initialise sans annoncer
    announced: List[int] = []
    if current > previous and previous > 0:
        announced = list(range(previous + 1, current + 1))

    return SeasonUpdate(
        requested_available=requested_available,
        released_beyond_request=released,
        announced=announced,
        notified_seasons=sorted(notified | set(requested_available) | set(released)),
        total_seasons=max(previous, current),
        total_changed=current > previous,
        all_requested_available=all_requested,
    )


def reconcile_episodes(
    notified_episodes: Mapping[int, Iterable[int]],
    available_episodes: Mapping[int, Iterable[int]],
) -> EpisodeUpdate:
    """Épisodes disponibles pas encore notifiés, triés par (saison, épisode)."""
    notified = {int(season): set(eps) for season, eps in notified_episodes.items()}

    new_episodes: List[Tuple[int, int]] = []
    for season, episodes in available_episodes.items():
        season = int(season)
        already = notified.get(season, set())
        new_episodes.extend((season, ep) for ep in set(episodes) if ep not in already)
    new_episodes.sort()

    merged = {season: set(eps) for season, eps in notified.items()}
    for season, episode in new_episodes:
        merged.setdefault(season, set()).add(episode)

    return EpisodeUpdate(
        new_episodes=new_episodes,
        notified_episodes={season: sorted(eps) for season, eps in sorted(merged.items())},
    )

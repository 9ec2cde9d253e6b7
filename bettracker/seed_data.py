"""
bettracker/seed_data.py — Built-in canonical seed data
=======================================================
Versioned, bundled entities the registry falls back to when the store has
nothing usable for a kind, and overlays onto stored data when SEED_VERSION
moves past the version the store last saw.

Keep the player seed small. Players are meant to be added from the review
queue as imports surface them.

Cross-sport abbreviation clashes (ATL Hawks / ATL Falcons, CHI Bulls /
CHI Bears, ...) are real and intentional: teams are not sport-scoped, so the
map builder records them as collisions and the resolver reports them as
ambiguous unless a longer spelling is used.

Bump SEED_VERSION whenever an entity is added here.
"""

from bettracker.lookup_key import dedupe_by_key
from bettracker.models import BetTypeEntity, Player, Team, check_kind

SEED_VERSION = 3


def _team(canonical: str, sport: str, abbreviations: list[str], nicknames: list[str], city: str) -> Team:
    # "PHX Suns" style spellings for every abbreviation + primary nickname
    primary = nicknames[0]
    aliases = [f"{abbr} {primary}" for abbr in abbreviations] + nicknames + abbreviations + [city]
    return Team(
        canonical=canonical,
        sport=sport,
        aliases=dedupe_by_key(aliases),
        abbreviations=tuple(abbreviations),
    )


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

SEED_TEAMS: tuple[Team, ...] = (
    # NBA
    _team("Atlanta Hawks", "NBA", ["ATL"], ["Hawks"], "Atlanta"),
    _team("Boston Celtics", "NBA", ["BOS"], ["Celtics"], "Boston"),
    _team("Brooklyn Nets", "NBA", ["BKN", "BRK"], ["Nets"], "Brooklyn"),
    _team("Charlotte Hornets", "NBA", ["CHA", "CHO"], ["Hornets"], "Charlotte"),
    _team("Chicago Bulls", "NBA", ["CHI"], ["Bulls"], "Chicago"),
    _team("Cleveland Cavaliers", "NBA", ["CLE"], ["Cavaliers", "Cavs"], "Cleveland"),
    _team("Dallas Mavericks", "NBA", ["DAL"], ["Mavericks", "Mavs"], "Dallas"),
    _team("Denver Nuggets", "NBA", ["DEN"], ["Nuggets"], "Denver"),
    _team("Detroit Pistons", "NBA", ["DET"], ["Pistons"], "Detroit"),
    _team("Golden State Warriors", "NBA", ["GSW", "GS"], ["Warriors"], "Golden State"),
    _team("Houston Rockets", "NBA", ["HOU"], ["Rockets"], "Houston"),
    _team("Indiana Pacers", "NBA", ["IND"], ["Pacers"], "Indiana"),
    _team("LA Clippers", "NBA", ["LAC"], ["Clippers"], "Los Angeles Clippers"),
    _team("Los Angeles Lakers", "NBA", ["LAL"], ["Lakers"], "L.A. Lakers"),
    _team("Memphis Grizzlies", "NBA", ["MEM"], ["Grizzlies", "Grizz"], "Memphis"),
    _team("Miami Heat", "NBA", ["MIA"], ["Heat"], "Miami"),
    _team("Milwaukee Bucks", "NBA", ["MIL"], ["Bucks"], "Milwaukee"),
    _team("Minnesota Timberwolves", "NBA", ["MIN"], ["Timberwolves", "T-Wolves", "Wolves"], "Minnesota"),
    _team("New Orleans Pelicans", "NBA", ["NOP", "NO"], ["Pelicans", "Pels"], "New Orleans"),
    _team("New York Knicks", "NBA", ["NYK", "NY"], ["Knicks"], "New York"),
    _team("Oklahoma City Thunder", "NBA", ["OKC"], ["Thunder"], "Oklahoma City"),
    _team("Orlando Magic", "NBA", ["ORL"], ["Magic"], "Orlando"),
    _team("Philadelphia 76ers", "NBA", ["PHI"], ["76ers", "Sixers"], "Philadelphia"),
    _team("Phoenix Suns", "NBA", ["PHX", "PHO"], ["Suns"], "Phoenix"),
    _team("Portland Trail Blazers", "NBA", ["POR"], ["Trail Blazers", "Blazers"], "Portland"),
    _team("Sacramento Kings", "NBA", ["SAC"], ["Kings"], "Sacramento"),
    _team("San Antonio Spurs", "NBA", ["SAS", "SA"], ["Spurs"], "San Antonio"),
    _team("Toronto Raptors", "NBA", ["TOR"], ["Raptors", "Raps"], "Toronto"),
    _team("Utah Jazz", "NBA", ["UTA"], ["Jazz"], "Utah"),
    _team("Washington Wizards", "NBA", ["WAS", "WSH"], ["Wizards", "Wiz"], "Washington"),
    # NFL
    _team("Atlanta Falcons", "NFL", ["ATL"], ["Falcons"], "Atlanta"),
    _team("Buffalo Bills", "NFL", ["BUF"], ["Bills"], "Buffalo"),
    _team("Chicago Bears", "NFL", ["CHI"], ["Bears"], "Chicago"),
    _team("Dallas Cowboys", "NFL", ["DAL"], ["Cowboys"], "Dallas"),
    _team("Detroit Lions", "NFL", ["DET"], ["Lions"], "Detroit"),
    _team("Green Bay Packers", "NFL", ["GB", "GNB"], ["Packers"], "Green Bay"),
    _team("Kansas City Chiefs", "NFL", ["KC", "KAN"], ["Chiefs"], "Kansas City"),
    _team("Philadelphia Eagles", "NFL", ["PHI"], ["Eagles"], "Philadelphia"),
    _team("San Francisco 49ers", "NFL", ["SF", "SFO"], ["49ers", "Niners"], "San Francisco"),
)


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------

SEED_PLAYERS: tuple[Player, ...] = (
    Player("LeBron James", "NBA", ("LeBron", "L. James", "King James"), team="Los Angeles Lakers"),
    Player("Nikola Jokić", "NBA", ("Nikola Jokic", "Jokic", "N. Jokic"), team="Denver Nuggets"),
    Player("Shai Gilgeous-Alexander", "NBA", ("SGA", "S. Gilgeous-Alexander"), team="Oklahoma City Thunder"),
    Player("D'Angelo Russell", "NBA", ("D. Russell",), team="Brooklyn Nets"),
    Player("Patrick Mahomes", "NFL", ("P. Mahomes", "Mahomes"), team="Kansas City Chiefs"),
)


# ---------------------------------------------------------------------------
# Bet types (stat-type markets)
# ---------------------------------------------------------------------------

SEED_BET_TYPES: tuple[BetTypeEntity, ...] = (
    BetTypeEntity("Pts", "NBA", ("Points", "Total Points"), description="Points"),
    BetTypeEntity("Reb", "NBA", ("Rebs", "Rebounds", "Total Rebounds"), description="Rebounds"),
    BetTypeEntity("Ast", "NBA", ("Asst", "Assists"), description="Assists"),
    BetTypeEntity(
        "3pt", "NBA",
        ("3-pt", "Made Threes", "Threes", "3-Pointers", "3 Pointers", "Three Pointers"),
        description="Made Threes",
    ),
    BetTypeEntity("Stl", "NBA", ("Steals",), description="Steals"),
    BetTypeEntity("Blk", "NBA", ("Blocks",), description="Blocks"),
    BetTypeEntity("TO", "NBA", ("Turnovers",), description="Turnovers"),
    BetTypeEntity("PRA", "NBA", ("P+R+A", "Points+Rebounds+Assists", "Pts+Reb+Ast"),
                  description="Points + Rebounds + Assists"),
    BetTypeEntity("PR", "NBA", ("P+R", "Points+Rebounds", "Pts+Reb"), description="Points + Rebounds"),
    BetTypeEntity("PA", "NBA", ("P+A", "Points+Assists", "Pts+Ast"), description="Points + Assists"),
    BetTypeEntity("Pass Yds", "NFL", ("Passing Yards", "Pass Yards"), description="Passing Yards"),
    BetTypeEntity("Rush Yds", "NFL", ("Rushing Yards", "Rush Yards"), description="Rushing Yards"),
    BetTypeEntity("Rec Yds", "NFL", ("Receiving Yards", "Rec Yards"), description="Receiving Yards"),
    BetTypeEntity("Anytime TD", "NFL", ("Anytime Touchdown", "Anytime TD Scorer", "ATD"),
                  description="Anytime Touchdown Scorer"),
    BetTypeEntity("Moneyline", "Other", ("ML", "Money Line"), description="Moneyline"),
    BetTypeEntity("Spread", "Other", ("Point Spread", "Handicap"), description="Spread"),
    BetTypeEntity("Total", "Other", ("O/U", "Over/Under", "Totals"), description="Game Total"),
)


_SEEDS = {
    "team": SEED_TEAMS,
    "player": SEED_PLAYERS,
    "betType": SEED_BET_TYPES,
}


def seed_entities(kind: str) -> tuple:
    """Return the built-in entities for one kind."""
    return _SEEDS[check_kind(kind)]

"""
Headline incident filter.

Keyword-scores raw headlines so that only likely security incidents
reach the classifier. Scores run from -100 to +100; opinion pieces,
politics, sport and business news are pushed below the threshold.
"""
import re
from typing import Dict, List

from .config import MIN_INCIDENT_SCORE

# (pattern, points, required co-occurring pattern or None)
INCIDENT_SIGNALS = [
    # killings
    (r"\b(killed|kills|killing)\b", 35, None),
    (r"\b(dead|death|dies|died)\b", 30, None),
    (r"\b(murdered|murder|slain)\b", 35, None),
    (r"\bgunned down\b", 35, None),
    (r"\bshot dead\b", 35, None),
    (r"\b(beheaded|dismembered|executed)\b", 35, None),
    (r"\b(lynched|mob justice)\b", 30, None),
    # kidnapping
    (r"\b(kidnap|kidnapped|kidnapping|kidnaps)\b", 35, None),
    (r"\b(abduct|abducted|abduction|abducts)\b", 35, None),
    (r"\bhostage\b", 30, None),
    (r"\bransom\b", 30, None),
    (r"\b(rescued|freed|released)\b", 25, r"\b(victim|hostage|kidnap)"),
    # robbery
    (r"\b(robbery|robbed|robbers|robbing)\b", 30, None),
    (r"\barmed robbery\b", 35, None),
    (r"\b(thieves|stolen|theft)\b", 20, None),
    (r"\bcar snatching\b", 30, None),
    (r"\bcarjack", 30, None),
    (r"\bone chance\b", 30, None),
    # armed groups
    (r"\b(gunmen|gunman)\b", 35, None),
    (r"\b(bandits|banditry)\b", 35, None),
    (r"\b(cultists|cultist)\b", 30, None),
    (r"\bcult clash\b", 35, None),
    (r"\b(insurgents|insurgent|insurgency)\b", 30, None),
    (r"\b(terrorists|terrorist|terrorism)\b", 30, None),
    (r"\b(hoodlums|miscreants)\b", 25, None),
    (r"\barmed (men|gang)\b", 30, None),
    (r"\bboko haram\b", 35, None),
    (r"\biswap\b", 35, None),
    (r"\bjihadist", 30, None),
    (r"\b(eiye|black axe|buccaneer|vikings|aye|neo black)\b", 30, None),
    # attack types
    (r"\b(attack|attacked|attacking|attacks)\b", 25, None),
    (r"\b(ambush|ambushed)\b", 30, None),
    (r"\b(raid|raided|raiding)\b", 25, None),
    (r"\b(invasion|invaded)\b", 25, None),
    (r"\b(explosion|exploded|explodes)\b", 30, None),
    (r"\b(bomb|bombing|bombed|bomber)\b", 35, None),
    (r"\b(blast|blasts)\b", 30, None),
    (r"\bied\b", 35, None),
    (r"\bsuicide bomb", 35, None),
    (r"\b(shot|shooting|shots fired|gunfire|gunshot)\b", 30, None),
    (r"\b(stabbed|stabbing|machete|cutlass)\b", 25, None),
    # outcomes
    (r"\b(injured|injuries|wounded)\b", 20, None),
    (r"\b(hospitalized|hospital)\b", 15, r"\b(victim|attack|shot|stab)"),
    (r"\b(arrested|apprehended|nabbed|caught)\b", 15, None),
    (r"\b(rescued|saved|freed)\b", 15, None),
    (r"\b(fled|escape|escaped)\b", 10, None),
    # herder-farmer and communal conflict
    (r"\b(herders|herdsmen)\b", 20, None),
    (r"\bfulani\b", 25, r"\b(attack|clash|kill|herd)"),
    (r"\b(farmers|herders) clash\b", 30, None),
    (r"\bcattle rustl", 25, None),
    (r"\bcommunal clash\b", 25, None),
    (r"\bethnic (clash|violence|crisis)\b", 25, None),
    (r"\btribal (war|clash)\b", 25, None),
    # civil unrest
    (r"\b(clash|clashes|clashed)\b", 20, None),
    (r"\b(riot|riots|rioting)\b", 20, None),
    (r"\b(protest|protesters)\b", 20, r"\b(kill|shot|injur|violen|clash)"),
    (r"\b(unrest|crisis)\b", 15, None),
    (r"\bendsars\b", 20, None),
    (r"\bpolice brutal", 20, None),
    # accidents and disasters
    (r"\b(accident|accidents)\b", 20, None),
    (r"\b(crash|crashed|crashes)\b", 20, None),
    (r"\b(collision|collided)\b", 20, None),
    (r"\bfire outbreak\b", 25, None),
    (r"\b(inferno|burnt|gutted|engulfed)\b", 20, None),
    (r"\b(collapse|collapsed)\b", 20, None),
    (r"\btanker (explosion|fire)\b", 25, None),
    # maritime and oil
    (r"\b(pirates|piracy|pirate)\b", 25, None),
    (r"\bsea pirates\b", 30, None),
    (r"\bpipeline (vandal|explosion|fire)", 25, None),
    (r"\billegal refin", 20, None),
    (r"\bbunker", 20, r"\b(oil|crude|explo)"),
    # weak signals
    (r"\b(police|army|military|soldiers|troops)\b", 5, None),
    (r"\b(victim|victims)\b", 10, None),
    (r"\b(suspect|suspects)\b", 10, None),
    (r"\b(corpse|body found|bodies)\b", 15, None),
    (r"\b(missing|disappear)", 10, None),
    (r"\b(threat|threatened)\b", 5, None),
    (r"\b(violence|violent)\b", 10, None),
    (r"\b(danger|dangerous)\b", 5, None),
    (r"\b(emergency|rescue)\b", 10, None),
]

# (pattern, penalty, exempting pattern or None)
NON_INCIDENT_PENALTIES = [
    (r"\bminister\b", 50, r"\b(attack|kill|kidnap|shot)"),
    (r"\bministry\b", 40, r"\b(attack|bomb|fire)"),
    (r"\b(policy|policies)\b", 50, None),
    (r"\bblueprint\b", 50, None),
    (r"\b(parliament|assembly|senate)\b", 40, r"\b(attack|bomb)"),
    (r"\b(election|electoral|campaign|vote|ballot|poll)\b", 45, r"\b(violen|kill|attack)"),
    (r"\b(inaugurate|swear.?in|appointment|appointed|nominated)\b", 50, None),
    (r"\b(budget|appropriation)\b", 40, None),
    (r"\b(hails|commends|praises|lauds|applauds)\b", 50, None),
    (r"\b(opinion|editorial|commentary)\b", 50, None),
    (r"\burged\b", 40, r"\b(flee|evacuat)"),
    (r"\bcalls on\b", 40, None),
    (r"\badvises\b", 35, None),
    (r"what .{1,40} must", 50, None),
    (r"how to (tackle|fight|address|solve|curb|end)", 50, None),
    (r"challenges (before|facing|of)", 50, None),
    (r"need to (address|tackle|fight)", 45, None),
    (r"\bway forward\b", 40, None),
    (r"\bsolution to\b", 40, None),
    (r"\b(hails|commends|praises) (troops|military|army|police|soldiers)\b", 50, None),
    (r"\bwar on terror\b", 40, r"\b(kill|attack|bomb|casualt)"),
    (r"\btackling insecurity\b", 40, r"\b(kill|attack)"),
    (r"\b(boost|strengthen|enhance) security\b", 35, None),
    (r"\b(football|soccer|super eagles|match|fifa|league|goal|scored)\b", 50, None),
    (r"\b(nollywood|movie|film|actor|actress)\b", 50, None),
    (r"\b(bbnaija|big brother|concert|music|album|song)\b", 50, None),
    (r"\b(wedding|birthday|celebration|festival)\b", 40, r"\b(attack|bomb|kill)"),
    (r"\b(naira|dollar|exchange rate|forex)\b", 40, r"\b(rob|stolen|fraud)"),
    (r"\b(stock|market|trading|shares)\b", 40, None),
    (r"\b(gdp|inflation|economy|economic)\b", 35, r"\b(crisis|violen)"),
    (r"\boil price\b", 35, None),
    (r"\b(award|awarded|wins|winner|honour|honored)\b", 45, r"\b(rescue|brav)"),
    (r"\b(achievement|achieves|success|successful)\b", 40, None),
    (r"\b(sermon|preach|pastor|imam|church|mosque)\b", 35, r"\b(attack|bomb|burn|kill)"),
    (r"\b(diplomat|embassy|ambassador)\b", 30, r"\b(attack|kidnap|threat)"),
    (r"\b(visit|meets|summit|conference)\b", 30, r"\b(attack|secur incident)"),
]

_SIGNALS = [(re.compile(p), pts, re.compile(req) if req else None) for p, pts, req in INCIDENT_SIGNALS]
_PENALTIES = [(re.compile(p), pts, re.compile(ex) if ex else None) for p, pts, ex in NON_INCIDENT_PENALTIES]


def calculate_incident_score(headline: str) -> int:
    """Score a headline; higher means more likely a real security incident."""
    if not headline:
        return -100

    h = headline.lower()
    score = 0

    for pattern, points, required in _SIGNALS:
        if pattern.search(h) and (required is None or required.search(h)):
            score += points

    for pattern, penalty, exempt in _PENALTIES:
        if pattern.search(h) and (exempt is None or not exempt.search(h)):
            score -= penalty

    return score


def is_likely_incident(headline: str) -> bool:
    return calculate_incident_score(headline) >= MIN_INCIDENT_SCORE


def _seendate_key(article: Dict) -> int:
    digits = "".join(ch for ch in (article.get("published_at") or "") if ch.isdigit())
    return int(digits[:14]) if digits else 0


def filter_incident_articles(articles: List[Dict], min_score: int = MIN_INCIDENT_SCORE) -> List[Dict]:
    """
    Keep articles whose headline scores at least min_score.

    Returns copies annotated with incident_score, sorted by score then
    by most recent seendate.
    """
    scored = []
    for a in articles:
        s = calculate_incident_score(a.get("title", ""))
        if s >= min_score:
            scored.append({**a, "incident_score": s})

    scored.sort(key=lambda a: (a["incident_score"], _seendate_key(a)), reverse=True)
    return scored

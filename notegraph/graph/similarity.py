"""String similarity measures for spotting near-duplicate link targets.

Four independent measures are combined into one composite score:
Jaro-Winkler, bigram Dice coefficient, token Jaccard overlap (with Korean
particle stripping) and substring containment.
"""

import re

from notegraph.domain.clusters import SimilarityScore

TOKEN_SEPARATORS = re.compile(r"[\s\-_.,;:!?'\"()\[\]{}]+")
HANGUL_ENDING = re.compile(r"[가-힣]$")
# compound particles are tried before single-character ones
COMPOUND_PARTICLES = re.compile(r"(으로|에서|에게|까지|부터|처럼|만큼|보다)$")
SINGLE_PARTICLES = re.compile(r"[은는이가을를의에와과로]$")


def _jaro_similarity(s1: str, s2: str) -> float:
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    match_window = max(0, max(len(s1), len(s2)) // 2 - 1)
    s1_matches = [False] * len(s1)
    s2_matches = [False] * len(s2)

    matches = 0
    for i, char in enumerate(s1):
        start = max(0, i - match_window)
        end = min(i + match_window + 1, len(s2))
        for j in range(start, end):
            if s2_matches[j] or s2[j] != char:
                continue
            s1_matches[i] = True
            s2_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(s1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if char != s2[k]:
            transpositions += 1
        k += 1

    return (
        matches / len(s1) + matches / len(s2) + (matches - transpositions / 2) / matches
    ) / 3


def jaro_winkler_similarity(s1: str, s2: str, prefix_scale: float = 0.1) -> float:
    """Jaro similarity plus a bonus for a common prefix of up to 4 characters."""
    jaro = _jaro_similarity(s1, s2)

    prefix_length = 0
    for char1, char2 in zip(s1[:4], s2[:4]):
        if char1 != char2:
            break
        prefix_length += 1

    return jaro + prefix_length * prefix_scale * (1 - jaro)


def _ngrams(text: str, n: int = 2) -> set[str]:
    normalized = text.lower().strip()
    if not normalized:
        return set()
    if len(normalized) < n:
        return {normalized}
    return {normalized[i : i + n] for i in range(len(normalized) - n + 1)}


def ngram_similarity(s1: str, s2: str, n: int = 2) -> float:
    """Dice coefficient of the n-gram sets: 2|A∩B| / (|A| + |B|)."""
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    ngrams1 = _ngrams(s1, n)
    ngrams2 = _ngrams(s2, n)
    if not ngrams1 or not ngrams2:
        return 0.0

    return 2 * len(ngrams1 & ngrams2) / (len(ngrams1) + len(ngrams2))


def _strip_particle(token: str) -> str:
    if HANGUL_ENDING.search(token) and len(token) > 2:
        stripped = COMPOUND_PARTICLES.sub("", token)
        if stripped != token:
            return stripped
    if HANGUL_ENDING.search(token) and len(token) > 1:
        return SINGLE_PARTICLES.sub("", token)
    return token


def tokenize(text: str) -> list[str]:
    """Lowercase tokens split on whitespace and punctuation, Korean particles removed."""
    tokens = [token for token in TOKEN_SEPARATORS.split(text.lower()) if token]
    return [_strip_particle(token) for token in tokens]


def token_overlap_similarity(s1: str, s2: str) -> float:
    """Jaccard similarity of the token sets: |A∩B| / |A∪B|."""
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    tokens1 = set(tokenize(s1))
    tokens2 = set(tokenize(s2))
    if not tokens1 or not tokens2:
        return 0.0

    return len(tokens1 & tokens2) / len(tokens1 | tokens2)


def containment_similarity(s1: str, s2: str) -> float:
    """len(shorter) / len(longer) when one string contains the other, else 0."""
    n1 = s1.lower().strip()
    n2 = s2.lower().strip()

    if n1 == n2:
        return 1.0
    if not n1 or not n2:
        return 0.0
    if n2 in n1:
        return len(n2) / len(n1)
    if n1 in n2:
        return len(n1) / len(n2)
    return 0.0


def calculate_similarity(s1: str, s2: str) -> SimilarityScore:
    """Weighted combination of all four measures.

    Containment only contributes when it is strong (> 0.5); otherwise the
    score is 0.4 Jaro-Winkler + 0.3 n-gram + 0.3 token overlap.
    """
    jw = jaro_winkler_similarity(s1, s2)
    ng = ngram_similarity(s1, s2)
    to = token_overlap_similarity(s1, s2)
    ct = containment_similarity(s1, s2)

    if s1 == s2:
        score = 1.0
    elif ct > 0.5:
        score = 0.3 * jw + 0.2 * ng + 0.2 * to + 0.3 * ct
    else:
        score = 0.4 * jw + 0.3 * ng + 0.3 * to

    return SimilarityScore(
        score=score,
        jaro_winkler=jw,
        ngram=ng,
        token_overlap=to,
        containment=ct,
    )


def is_similar(s1: str, s2: str, threshold: float = 0.7) -> bool:
    return calculate_similarity(s1, s2).score >= threshold


def find_similar_pairs(
    strings: list[str], threshold: float = 0.7
) -> list[tuple[int, int, SimilarityScore]]:
    """All index pairs scoring at least `threshold`, best first."""
    pairs = []
    for i in range(len(strings)):
        for j in range(i + 1, len(strings)):
            similarity = calculate_similarity(strings[i], strings[j])
            if similarity.score >= threshold:
                pairs.append((i, j, similarity))

    pairs.sort(key=lambda pair: pair[2].score, reverse=True)
    return pairs

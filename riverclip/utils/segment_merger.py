"""Reassembly of line features split across several OSM ways."""

from dataclasses import replace

from .app_config import DEFAULT_MERGE_TOLERANCE


def endpoints_near(p, q, tolerance=DEFAULT_MERGE_TOLERANCE):
    """L1 distance test between two (lon, lat) points."""
    return abs(p[0] - q[0]) + abs(p[1] - q[1]) < tolerance


class SegmentMerger:
    """
    Joins line features whose endpoints coincide into longer paths.

    Runs pairwise passes until a full pass makes no join. Each join removes one
    feature, so `passes` never exceeds the input count.
    """

    def __init__(self, tolerance=DEFAULT_MERGE_TOLERANCE):
        self.tolerance = tolerance
        self.passes = 0
        self.merge_count = 0

    def _combine(self, a, b, points):
        # Tags of `a` win on conflicting keys
        tags = dict(b.tags)
        tags.update(a.tags)
        return replace(
            a,
            points=tuple(points),
            tags=tags,
            width=a.width if a.width is not None else b.width,
            source_ids=tuple(a.source_ids or (a.source_id,)) + tuple(b.source_ids or (b.source_id,)),
        )

    def join(self, a, b):
        """
        Join `b` onto `a` if an endpoint pair coincides.

        Returns:
            LineFeature or None: joined feature, None when the ends are apart
        """
        near = self._near

        if near(a.end, b.start):
            return self._combine(a, b, a.points + b.points[1:])
        if near(a.start, b.end):
            return self._combine(a, b, b.points + a.points[1:])
        if near(a.end, b.end):
            return self._combine(a, b, a.points + b.points[-2::-1])
        if near(a.start, b.start):
            return self._combine(a, b, a.points[::-1] + b.points[1:])
        return None

    def _near(self, p, q):
        return endpoints_near(p, q, self.tolerance)

    def _merge_pass(self, features):
        merged = 0
        used = set()
        result = []

        for i in range(len(features)):
            if i in used:
                continue
            current = features[i]
            for j in range(i + 1, len(features)):
                if j in used:
                    continue
                joined = self.join(current, features[j])
                if joined is not None:
                    current = joined
                    used.add(j)
                    merged += 1
            result.append(current)

        return result, merged

    def merge(self, features):
        """
        Merge connected line features to convergence.

        Args:
            features: LineFeatures, in input order

        Returns:
            list: Merged LineFeatures (count <= input count)
        """
        features = list(features)
        self.passes = 0
        self.merge_count = 0
        if not features:
            return []

        while True:
            self.passes += 1
            features, merged = self._merge_pass(features)
            self.merge_count += merged
            if merged == 0:
                return features


def merge_line_features(features, tolerance=DEFAULT_MERGE_TOLERANCE):
    """Convenience wrapper around SegmentMerger.merge()."""
    return SegmentMerger(tolerance=tolerance).merge(features)

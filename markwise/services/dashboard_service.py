"""
Dashboard statistics.

Aggregation happens in the database (get_dashboard_stats); this module
only reshapes the row into chart-ready series.
"""
from markwise.services.clients import get_supabase

SCORE_BUCKETS = ['0-2', '2-4', '4-6', '6-8', '8-10']


def empty_stats():
    return {
        "questions": 0,
        "answers": 0,
        "evaluations": 0,
        "avg_score": None,
        "avg_confidence": None,
        "score_distribution": [{"range": r, "count": 0} for r in SCORE_BUCKETS],
        "confidence_trend": [],
    }


def shape_dashboard_stats(row):
    """Turn one get_dashboard_stats row into the dashboard payload."""
    if not row:
        return empty_stats()

    # Known buckets keep their order; unexpected ranges are appended
    distribution = {r: 0 for r in SCORE_BUCKETS}
    for d in row.get('score_distribution') or []:
        distribution[d.get('range')] = d.get('count') or 0
    score_distribution = [{"range": r, "count": c} for r, c in distribution.items()]

    # Rows come newest first; labels follow that order, display is oldest first
    trend = [
        {"name": f"A{i + 1}", "confidence": round(float(t.get('confidence') or 0) * 100)}
        for i, t in enumerate(row.get('confidence_trend') or [])
    ]
    trend.reverse()

    return {
        "questions": row.get('total_questions') or 0,
        "answers": row.get('total_answers') or 0,
        "evaluations": row.get('total_evaluations') or 0,
        "avg_score": row.get('avg_score') or 0,
        "avg_confidence": row.get('avg_ocr_confidence') or 0,
        "score_distribution": score_distribution,
        "confidence_trend": trend,
    }


def get_dashboard_stats():
    db = get_supabase()
    result = db.rpc('get_dashboard_stats', {}).execute()
    rows = result.data or []
    return shape_dashboard_stats(rows[0] if rows else None)

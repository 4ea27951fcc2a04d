#!/usr/bin/env python3
"""
Re-classify cached reviews with the current rule tables.
"""

import logging

from motopulse import db, rules, utils
from motopulse.models import REDDIT_BASE_URL, Post, Review


def post_from_row(row) -> Post:
    review = Review.from_row(row)
    return Post(
        id=review.id,
        title=review.title,
        body=review.body,
        channel=review.channel,
        upvotes=review.upvotes,
        comments=review.comments,
        permalink=review.url[len(REDDIT_BASE_URL):] if review.url.startswith(REDDIT_BASE_URL) else review.url,
        created_utc=review.created_at.timestamp(),
        author=review.author,
    )


def reclassify_cached_reviews() -> int:
    """Re-run the classifier over every cached row. Returns the number of rows rewritten."""
    db.init_db()
    conn = db.connect()
    try:
        rows = db.all_reviews(conn)
        print(f'Re-classifying {len(rows)} cached reviews with current rules...')

        changed = 0
        new_rows = []
        for row in rows:
            review = rules.classify_post(post_from_row(row))
            if review.category != row["category"] or review.sentiment != row["sentiment"]:
                changed += 1
            fetched_at = utils.parse_timestamp(row["fetched_at"]) or utils.utcnow()
            new_rows.append(review.to_row(fetched_at))

        written, failed = db.upsert_reviews(conn, new_rows)

        print('✅ Re-classification complete!')
        print(f'   Rewrote {written} reviews ({failed} failed)')
        print(f'   {changed} reviews changed category or sentiment')
        return written
    finally:
        conn.close()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    reclassify_cached_reviews()

from sqlalchemy.orm import joinedload

from feed_app.models.post_model import Post
from feed_app.db import db


def count_posts():
    return Post.query.count()


def get_page(page: int, per_page: int):
    return (
        Post.query
        .options(joinedload(Post.creator))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )


def get_by_id(post_id):
    return db.session.get(Post, post_id, options=[joinedload(Post.creator)])


def add_post_for_creator(creator, title, content, image_url):
    post = Post(
        title=title,
        content=content,
        image_url=image_url,
    )
    creator.posts.append(post)
    db.session.add(post)
    db.session.commit()
    return post


def save(post):
    db.session.add(post)
    db.session.commit()
    return post


def delete_for_creator(creator, post):
    if post in creator.posts:
        creator.posts.remove(post)
    db.session.delete(post)
    db.session.commit()


def rollback():
    db.session.rollback()

"""FastAPI routers: auth, posts, actions (like/comment/follow) and users."""

"""PrekClip: social-media backend (accounts, posts, likes, comments, follows)."""

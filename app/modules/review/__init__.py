"""Client-side review of generated proposals.

``state`` holds the pure transition function, ``session`` drives it against
``api_client``, and ``cli`` exposes the flow as ``flashcards-review``.
"""

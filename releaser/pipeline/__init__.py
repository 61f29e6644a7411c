"""Release pipeline stages.

Leaf first: manifest -> tags -> build -> packaging -> aggregate -> publish,
tied together by ``runner.run_pipeline``.
"""

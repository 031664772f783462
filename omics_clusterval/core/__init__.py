"""Core analysis modules for omics-clusterval.

- clustering: single-fold multi-method, multi-k clustering evaluation
- crossval: cross-validated orchestration with nearest-neighbour transfer
- stability: Jaccard-based clustering stability
- association: categorical covariate association estimators (incl. DSC)
"""

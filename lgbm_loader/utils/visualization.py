"""
Model visualization utilities

Plots describing a loaded GBDT.
"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from ..models.gbdt import GBDT


def plot_feature_importances(gbdt: GBDT, top_n: Optional[int] = 20,
                             title: str = "Feature Importances",
                             save_path: Optional[str] = None) -> None:
    """
    Plot the importances recorded in the model file

    Parameters:
    -----------
    gbdt : GBDT
        Loaded model
    top_n : int, optional, default=20
        Number of features to show (all when None)
    title : str, default="Feature Importances"
        Plot title
    save_path : str, optional
        Where to save the figure
    """
    if not gbdt.feature_importances:
        raise ValueError("Model has no feature importances")

    names = list(gbdt.feature_importances.keys())
    values = np.array([gbdt.get_feature_importance(name) for name in names])

    order = np.argsort(values)[::-1]
    if top_n is not None:
        order = order[:top_n]

    # most important feature on top
    order = order[::-1]

    plt.figure(figsize=(10, max(3, 0.4 * len(order))))
    plt.barh([names[i] for i in order], values[order])
    plt.xlabel("Importance")
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()

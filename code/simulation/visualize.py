# simulation/visualize.py
import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np


def plot_predictability_matrix(frame, outdir, filename="predictability_matrix.png"):
    """
    Génère la carte des probabilités de livraison de tous les nœuds.

    Args:
        frame (DataFrame): probabilités (lignes = porteur, colonnes = destination)
        outdir (str): dossier de sortie
        filename (str): nom du fichier image

    Returns:
        str: chemin de l'image
    """
    os.makedirs(outdir, exist_ok=True)
    path = os.path.join(outdir, filename)

    plt.figure(figsize=(10, 8))
    plt.imshow(frame.to_numpy(dtype=float), cmap='viridis', interpolation='none', vmin=0.0, vmax=1.0)
    plt.colorbar(label='Probabilité')
    plt.xticks(range(len(frame.columns)), [str(c) for c in frame.columns], rotation=90)
    plt.yticks(range(len(frame.index)), [str(i) for i in frame.index])
    plt.xlabel('Nœud destination')
    plt.ylabel('Nœud porteur')
    plt.title('Matrice de probabilité PRoPHET')
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def plot_deliveries(report, end_time, outdir, filename="deliveries.png"):
    """
    Trace le nombre cumulé de messages livrés au cours du temps.

    Args:
        report (MessageStatsReport): rapport de la simulation
        end_time (float): fin de la simulation
        outdir (str): dossier de sortie
        filename (str): nom du fichier image

    Returns:
        str: chemin de l'image
    """
    os.makedirs(outdir, exist_ok=True)
    path = os.path.join(outdir, filename)

    times = np.sort([entry['t_recv'] for entry in report.delivery_log])
    counts = np.arange(1, len(times) + 1)

    plt.figure(figsize=(10, 6))
    plt.step(np.concatenate(([0.0], times, [end_time])),
             np.concatenate(([0], counts, [len(times)])), where='post', color='b')
    plt.axhline(y=len(report.created), color='r', linestyle='--', label='Messages créés')
    plt.xlabel('Temps (s)')
    plt.ylabel('Messages livrés')
    plt.title('Livraisons cumulées')
    plt.legend()
    plt.grid(True)
    plt.savefig(path)
    plt.close()
    return path

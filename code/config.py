# config.py
import os

# Racine du dépôt (les chemins sont résolus depuis ce dossier)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Configuration centralisée pour tout le projet
CONFIG = {
    'outdir': os.path.join(BASE_DIR, 'data_logs'),
    'routing': {
        'initial_copies': 6,           # Nombre initial de copies d'un message (L)
        'split_mode': 'binary',        # binary, weighted ou source
        'p_init': 0.75,                # Constante d'initialisation PRoPHET
        'beta': 0.25,                  # Facteur de transitivité
        'gamma': 0.98,                 # Facteur de vieillissement
        'seconds_in_time_unit': 30,    # Durée d'une unité de temps pour le vieillissement
        'prediction_mode': 'average',  # average (moyenne pondérée) ou classic
        'community_threshold': 3,      # Nombre de contacts pour entrer dans la communauté locale
        'queue_mode': 'fifo',          # fifo, random, largest_first, smallest_first
        'bias': 'none',                # none, community ou bubble
        'delete_at_one_copy': False,   # Supprimer la dernière copie après un relais
        'seed': 1
    },
    'simulation': {
        'trace_path': os.path.join(BASE_DIR, 'traces', 'contacts_sample.csv'),
        'messages_path': None,         # Si None, les messages sont générés aléatoirement
        'end_time': 5000,              # Durée simulée (secondes)
        'update_interval': 1.0,        # Pas de la simulation (secondes)
        'buffer_size': 5_000_000,      # Taille du buffer de chaque nœud (octets)
        'transmit_speed': 250_000,     # Débit d'une connexion (octets/s)
        'message_size': 50_000,        # Taille d'un message généré (octets)
        'message_ttl': None,           # Durée de vie des messages (secondes), None = infinie
        'message_count': 40,           # Nombre de messages générés
        'message_interval': (25, 35),  # Intervalle entre deux créations (secondes)
        'seed': 1
    }
}

# Chemins et constantes
OUTDIR = CONFIG['outdir']


def ensure_outdir(path=None):
    """
    Crée le dossier de sortie s'il n'existe pas.

    Args:
        path (str, optional): dossier à créer. Par défaut OUTDIR.

    Returns:
        str: chemin du dossier
    """
    path = path or OUTDIR
    os.makedirs(path, exist_ok=True)
    return path

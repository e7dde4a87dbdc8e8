# data/loader.py
from dataclasses import dataclass

import numpy as np
import pandas as pd

CONTACT_COLUMNS = ['time', 'node_a', 'node_b', 'event']
MESSAGE_COLUMNS = ['time', 'id', 'source', 'destination', 'size']


@dataclass(frozen=True)
class ContactEvent:
    """Ouverture ou fermeture d'un contact entre deux nœuds.

    Attributes:
        time: Instant de l'événement
        a: Premier nœud
        b: Second nœud
        up: True pour une ouverture, False pour une fermeture
    """
    time: float
    a: object
    b: object
    up: bool


@dataclass(frozen=True)
class MessageEvent:
    """Création d'un message à un instant donné.

    Attributes:
        time: Instant de création
        id: Identifiant du message
        source: Nœud source
        destination: Nœud destinataire
        size: Taille en octets
        ttl: Durée de vie en secondes (None = infinie)
    """
    time: float
    id: str
    source: object
    destination: object
    size: int
    ttl: float = None


def load_contact_trace(path):
    """
    Charge une trace de contacts au format CSV (time,node_a,node_b,event).

    Args:
        path: Chemin du fichier CSV (event vaut 'up' ou 'down')

    Returns:
        list[ContactEvent]: événements triés par instant (tri stable)
    """
    print(f"### Importation de la trace de contacts {path} ###")
    df = pd.read_csv(path, header=0, skipinitialspace=True)

    missing = [c for c in CONTACT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Colonnes manquantes dans la trace de contacts: {missing}")

    events = df['event'].astype(str).str.strip().str.lower()
    invalid = sorted(set(events) - {'up', 'down'})
    if invalid:
        raise ValueError(f"Événements de contact inconnus: {invalid}")

    df = df.assign(event=events).sort_values('time', kind='stable')
    return [
        ContactEvent(float(t), a, b, e == 'up')
        for t, a, b, e in zip(df['time'].tolist(), df['node_a'].tolist(),
                              df['node_b'].tolist(), df['event'].tolist())
    ]


def load_message_events(path):
    """
    Charge les créations de messages au format CSV (time,id,source,destination,size[,ttl]).

    Args:
        path: Chemin du fichier CSV

    Returns:
        list[MessageEvent]: créations triées par instant
    """
    print(f"### Importation des messages {path} ###")
    df = pd.read_csv(path, header=0, skipinitialspace=True)

    missing = [c for c in MESSAGE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Colonnes manquantes dans le fichier de messages: {missing}")

    if 'ttl' not in df.columns:
        df['ttl'] = None
    df = df.sort_values('time', kind='stable')

    messages = []
    for t, mid, src, dst, size, ttl in zip(df['time'].tolist(), df['id'].tolist(),
                                           df['source'].tolist(), df['destination'].tolist(),
                                           df['size'].tolist(), df['ttl'].tolist()):
        ttl = None if ttl is None or pd.isna(ttl) else float(ttl)
        messages.append(MessageEvent(float(t), str(mid), src, dst, int(size), ttl))
    return messages


def generate_messages(node_ids, count, interval, size, ttl=None, start=0.0, seed=1):
    """
    Génère des créations de messages entre nœuds choisis aléatoirement.

    Args:
        node_ids (list): identifiants des nœuds
        count (int): nombre de messages
        interval (tuple): bornes (min, max) de l'intervalle entre deux créations
        size (int): taille des messages en octets
        ttl (float, optional): durée de vie des messages. Par défaut None.
        start (float, optional): instant de la première création. Par défaut 0.0.
        seed (int, optional): graine aléatoire. Par défaut 1.

    Returns:
        list[MessageEvent]: créations triées par instant
    """
    if len(node_ids) < 2:
        raise ValueError("Il faut au moins deux nœuds pour générer des messages")

    rng = np.random.default_rng(seed)
    nodes = list(node_ids)
    t = float(start)
    messages = []
    for i in range(count):
        src, dst = rng.choice(len(nodes), size=2, replace=False)
        messages.append(MessageEvent(t, f"M{i + 1}", nodes[src], nodes[dst], int(size), ttl))
        t += float(rng.uniform(interval[0], interval[1]))
    return messages


def trace_node_ids(contacts, messages=()):
    """
    Liste les nœuds apparaissant dans une trace, dans l'ordre d'apparition.

    Args:
        contacts (list[ContactEvent]): événements de contact
        messages (list[MessageEvent], optional): créations de messages

    Returns:
        list: identifiants des nœuds
    """
    seen = {}
    for ev in contacts:
        seen.setdefault(ev.a, None)
        seen.setdefault(ev.b, None)
    for ev in messages:
        seen.setdefault(ev.source, None)
        seen.setdefault(ev.destination, None)
    return list(seen)

#!/usr/bin/env python3
# protocols/__init__.py
"""
Package du cœur de routage DTN.

Ce package contient le routeur Spray-and-Wait guidé par PRoPHET et ses composants:
- DTNRouter: Classe de base définissant les points d'appel du simulateur
- PredictabilityEstimator: Probabilités de livraison PRoPHET (directe, transitive, vieillissement)
- ReplicationController: Compteur de copies Spray-and-Wait (binary, weighted, source)
- ForwardingNegotiator: Ordre des offres de transfert à chaque contact
- CommunityDetector: Communauté locale et biais BubbleRap
- SprayAndWaitRouter: Composition des composants ci-dessus
"""

from protocols.base import (DTNRouter, PredictabilityView, CommunityView,
                            RoutingError, ConfigurationError, ContractViolation)
from protocols.settings import RoutingSettings
from protocols.prediction import PredictabilityEstimator, PredictabilityTable
from protocols.replication import ReplicationController, MSG_COUNT_PROPERTY
from protocols.negotiation import ForwardingNegotiator, QueueOrdering, Offer
from protocols.community import CommunityDetector
from protocols.router import SprayAndWaitRouter, exchange_contact

__all__ = ['DTNRouter', 'PredictabilityView', 'CommunityView', 'RoutingError',
           'ConfigurationError', 'ContractViolation', 'RoutingSettings',
           'PredictabilityEstimator', 'PredictabilityTable', 'ReplicationController',
           'MSG_COUNT_PROPERTY', 'ForwardingNegotiator', 'QueueOrdering', 'Offer',
           'CommunityDetector', 'SprayAndWaitRouter', 'exchange_contact']

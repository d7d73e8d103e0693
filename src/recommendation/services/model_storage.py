"""
Model Storage Service
Precompute-or-load lifecycle and model files shared by the recommendation engines

Similarity matrices are stored in a line oriented text format:

    <entity_id>
    <neighbor_id>|<similarity>
    ...

A single field line opens the neighbor block of a new entity. Latent factor
models are stored with joblib.
"""
import os
import pickle
import tempfile
from datetime import datetime
from typing import Any, Optional, Protocol, TextIO

import joblib
import structlog

from ..exceptions import ConfigurationError, MalformedModelFileError
from ..models.recommendation import LatentFactors, Neighbor, SimilarityMatrix

logger = structlog.get_logger()


class ModelCapability(Protocol):
    """What an engine provides to its PersistentModel"""

    def recompute_model(self) -> Any:
        ...

    def rating_for(self, user, item) -> Optional[float]:
        ...


class SimilarityMatrixCodec:
    """Reads and writes similarity matrices in the line format"""

    binary = False

    def dump(self, model: SimilarityMatrix, fh: TextIO):
        for entity_id, neighbors in model.items():
            fh.write(f"{int(entity_id)}\n")
            for neighbor in neighbors or []:
                fh.write(f"{int(neighbor.id)}|{float(neighbor.similarity)!r}\n")

    def load(self, fh: TextIO, file_path: str = None) -> SimilarityMatrix:
        model: SimilarityMatrix = {}
        current_id = None

        for line_number, raw_line in enumerate(fh, start=1):
            line = raw_line.strip()
            if not line:
                continue

            fields = line.split("|")
            if len(fields) == 1:
                current_id = self._parse(int, fields[0], file_path, line_number)
                if current_id in model:
                    raise MalformedModelFileError(
                        f"duplicate block for entity {current_id}", file_path, line_number)
                model[current_id] = []
            elif len(fields) == 2:
                if current_id is None:
                    raise MalformedModelFileError(
                        "neighbor line before any entity line", file_path, line_number)
                neighbor_id = self._parse(int, fields[0], file_path, line_number)
                similarity = self._parse(float, fields[1], file_path, line_number)
                if neighbor_id == current_id:
                    raise MalformedModelFileError(
                        f"entity {current_id} lists itself as a neighbor", file_path, line_number)
                model[current_id].append(Neighbor(neighbor_id, similarity))
            else:
                raise MalformedModelFileError(
                    f"expected 1 or 2 fields, got {len(fields)}", file_path, line_number)

        return model

    @staticmethod
    def _parse(cast, value: str, file_path: str, line_number: int):
        try:
            return cast(value.strip())
        except ValueError:
            raise MalformedModelFileError(
                f"invalid {cast.__name__} value {value!r}", file_path, line_number) from None


class JoblibCodec:
    """Stores latent factor tables with joblib"""

    binary = True

    def dump(self, model: LatentFactors, fh):
        joblib.dump({
            'n_features': model.n_features,
            'user_features': model.user_features,
            'item_features': model.item_features,
        }, fh)

    def load(self, fh, file_path: str = None) -> LatentFactors:
        try:
            data = joblib.load(fh)
        except (ValueError, EOFError, IndexError, KeyError, pickle.UnpicklingError) as exc:
            raise MalformedModelFileError(f"unreadable latent factor model: {exc}", file_path) from exc
        try:
            return LatentFactors(
                n_features=data['n_features'],
                user_features=data['user_features'],
                item_features=data['item_features'],
            )
        except (KeyError, TypeError):
            raise MalformedModelFileError("not a latent factor model", file_path) from None


class PersistentModel:
    """
    Holds an engine's model and orchestrates precompute, persist and load

    The owning engine supplies recompute_model() and rating_for(user, item);
    everything else about the model lifecycle lives here.
    """

    def __init__(self, owner: ModelCapability, codec=None,
                 file_path: Optional[str] = None, save_to_file: bool = True):
        self.owner = owner
        self.codec = codec or SimilarityMatrixCodec()
        self.file_path = file_path
        self.save_to_file = save_to_file
        self.model = None
        self.logger = logger.bind(component=type(owner).__name__)

    @property
    def has_path(self) -> bool:
        return bool(self.file_path)

    @property
    def is_ready(self) -> bool:
        return self.model is not None

    def reset(self):
        self.model = None

    def precompute(self, force_recompute: bool = True):
        """
        Build the model or load it from file

        Args:
            force_recompute: Recompute (and persist when enabled) if True,
                otherwise load from the configured file
        """
        if force_recompute:
            self.recompute()
            if self.save_to_file and self.has_path:
                self.persist()
        elif self.has_path:
            self.load()
        else:
            self.logger.warning("No model file configured, model left unset")

    def recompute(self):
        start_time = datetime.now()
        self.logger.info("Model computation started")
        self.model = self.owner.recompute_model()
        self.logger.info("Model computation completed",
                         duration_seconds=(datetime.now() - start_time).total_seconds(),
                         entities=len(self.model) if isinstance(self.model, dict) else None)

    def persist(self):
        """Write the model to file_path, replacing the file only after a full write"""
        if not self.has_path:
            raise ConfigurationError("Cannot persist model: no file path configured")
        if self.model is None:
            raise ConfigurationError("Cannot persist model: model has not been computed")

        directory = os.path.dirname(os.path.abspath(self.file_path))
        os.makedirs(directory, exist_ok=True)

        mode = "wb" if self.codec.binary else "w"
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, mode) as fh:
                self.codec.dump(self.model, fh)
            os.replace(tmp_path, self.file_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        self.logger.info("Model saved", file_path=self.file_path)

    def load(self):
        """Read the model from file_path; a missing file leaves the model unset"""
        if not self.has_path:
            raise ConfigurationError("Cannot load model: no file path configured")
        if not os.path.exists(self.file_path):
            self.logger.warning("Model file not found, model left unset", file_path=self.file_path)
            self.model = None
            return

        mode = "rb" if self.codec.binary else "r"
        with open(self.file_path, mode) as fh:
            self.model = self.codec.load(fh, self.file_path)

        self.logger.info("Model loaded", file_path=self.file_path)

    def predict_rating(self, user, item) -> Optional[float]:
        """The user's own rating when present, otherwise the engine's estimate"""
        existing = user.rating_for(item.id)
        if existing is not None:
            return existing
        return self.owner.rating_for(user, item)

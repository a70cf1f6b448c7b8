import logging

from rest_framework import status
from rest_framework.response import Response

from pizzaflow.core.exceptions import (
    BaseErroCore,
    DadosInvalidosError,
    StatusInvalidoError,
    ItemNaoEncontradoError,
    ExclusaoBloqueadaError,
    TransicaoInvalidaError,
    CodigoCupomDuplicadoError,
)

logger = logging.getLogger(__name__)


# Ordem importa: a primeira classe compatível define o status HTTP.
STATUS_POR_ERRO = (
    (DadosInvalidosError, status.HTTP_400_BAD_REQUEST),
    (StatusInvalidoError, status.HTTP_400_BAD_REQUEST),
    (ItemNaoEncontradoError, status.HTTP_404_NOT_FOUND),
    (ExclusaoBloqueadaError, status.HTTP_409_CONFLICT),
    (TransicaoInvalidaError, status.HTTP_409_CONFLICT),
    (CodigoCupomDuplicadoError, status.HTTP_409_CONFLICT),
)


def resposta_erro(erro: BaseErroCore) -> Response:
    """Converte uma exceção do Core em uma Response do DRF."""
    for classe, codigo in STATUS_POR_ERRO:
        if isinstance(erro, classe):
            break
    else:
        codigo = status.HTTP_400_BAD_REQUEST

    corpo = {'message': str(erro)}
    if isinstance(erro, ExclusaoBloqueadaError):
        corpo['referencias'] = erro.referencias
    if codigo == status.HTTP_409_CONFLICT:
        logger.warning("Operação recusada (%s): %s", type(erro).__name__, erro)
    return Response(corpo, status=codigo)

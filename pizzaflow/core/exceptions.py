class BaseErroCore(Exception):
    """Classe base para todas as exceções da Camada Core."""
    pass

class DadosInvalidosError(BaseErroCore):
    """Erro levantado quando dados inválidos são fornecidos."""
    def __init__(self, message="Os dados fornecidos são inválidos."):
        self.message = message
        super().__init__(self.message)

# ===============================================
# ERROS DE PERSISTÊNCIA E ENTIDADE
# ===============================================

class ItemNaoEncontradoError(BaseErroCore):
    """Erro levantado quando um registro (genérico) não é encontrado."""
    def __init__(self, message="O item solicitado não foi encontrado."):
        self.message = message
        super().__init__(self.message)

class PedidoNaoEncontradoError(ItemNaoEncontradoError):
    """Erro específico para Pedidos não encontrados."""
    pass

class ItemCardapioNaoEncontradoError(ItemNaoEncontradoError):
    """Erro específico para itens do cardápio não encontrados."""
    pass

class CupomNaoEncontradoError(ItemNaoEncontradoError):
    pass

class EntregadorNaoEncontradoError(ItemNaoEncontradoError):
    pass

class ExclusaoBloqueadaError(BaseErroCore):
    """
    Erro levantado quando um registro ainda é referenciado por pedidos
    e, por regra de negócio, não pode ser excluído.
    """
    def __init__(self, registro_id: str, referencias: int, message=None):
        self.registro_id = registro_id
        self.referencias = referencias
        if message is None:
            message = (f"Registro {registro_id} não pode ser excluído pois está "
                       f"associado a {referencias} pedido(s).")
        self.message = message
        super().__init__(message)

class CodigoCupomDuplicadoError(BaseErroCore):
    def __init__(self, codigo: str):
        self.codigo = codigo
        self.message = f'O código de cupom "{codigo}" já existe.'
        super().__init__(self.message)

# ===============================================
# ERROS DE FLUXO DO PEDIDO
# ===============================================

class StatusInvalidoError(BaseErroCore):
    """Erro levantado ao tentar definir um status de pedido inexistente."""
    def __init__(self, message="O status fornecido não é válido para um pedido."):
        self.message = message
        super().__init__(self.message)

class TransicaoInvalidaError(BaseErroCore):
    """Erro levantado quando a transição pedida não existe na máquina de estados."""
    def __init__(self, status_atual: str, evento: str, message=None):
        self.status_atual = status_atual
        self.evento = evento
        if message is None:
            message = f"Transição '{evento}' não permitida a partir do status '{status_atual}'."
        self.message = message
        super().__init__(message)

class CupomEsgotadoError(BaseErroCore):
    """O incremento condicional do cupom falhou: o limite de uso foi atingido por outro pedido."""
    def __init__(self, cupom_id: str):
        self.cupom_id = cupom_id
        self.message = f"Cupom {cupom_id} atingiu o limite de uso."
        super().__init__(self.message)

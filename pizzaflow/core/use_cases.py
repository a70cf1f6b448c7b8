# pizzaflow/core/use_cases.py
"""
Implementação dos Casos de Uso (Lógica de Negócio) da aplicação.
Esta camada depende apenas das Entidades e Portas (Interfaces) do Core,
garantindo o isolamento da lógica de negócio.
"""
import logging
import random
import re
import uuid
from dataclasses import replace
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Callable, Dict, List, Optional

# Entidades e Exceções
from pizzaflow.core.entities import (
    ItemCardapio, ItemPedido, Pedido, Cupom, Entregador, DadosNovoPedido, DadosItemNovoPedido,
    ResultadoValidacaoCupom, RotaOtimizada, ParadaEntrega, PlanoRota, ResultadoDespacho,
    FalhaDespacho, EnderecoCep, AnaliseDashboard, StatusPedido, StatusPagamento,
    TipoPagamento, TipoDesconto, agora_utc,
)
from pizzaflow.core.exceptions import (
    BaseErroCore,
    DadosInvalidosError,
    PedidoNaoEncontradoError,
    ItemCardapioNaoEncontradoError,
    CupomNaoEncontradoError,
    EntregadorNaoEncontradoError,
    ExclusaoBloqueadaError,
    CupomEsgotadoError,
)
from pizzaflow.core.precificacao import (
    calcular_totais, congelar_totais, motivo_invalidade, para_decimal, quantidade_inteira, quantizar, ZERO, CEM,
)
from pizzaflow.core.ciclo_vida import EventoPedido, aplicar_transicao, evento_para
from pizzaflow.core.analytics import calcular_analise, dias_do_periodo, ultimos_dias
from pizzaflow.core.exportacao import exportar_pedidos_csv

# Portas (Interfaces) - Importadas do pizzaflow/core/ports.py
from pizzaflow.core.ports import (
    IItemCardapioRepository,
    IPedidoRepository,
    ICupomRepository,
    IEntregadorRepository,
    IRotaGateway,
    ICepGateway,
)

logger = logging.getLogger(__name__)

Relogio = Callable[[], datetime]


def _texto_obrigatorio(valor: Optional[str], campo: str) -> str:
    valor = (valor or "").strip()
    if not valor:
        raise DadosInvalidosError(f"O campo '{campo}' é obrigatório.")
    return valor


# ====================================================================
# 1. CUPONS
# ====================================================================

class ValidarCupomUseCase:
    """
    Verifica se um código de cupom pode ser aplicado a um subtotal.
    Cupom inválido nunca é exceção: o resultado traz o motivo para a UI.
    """
    def __init__(self, cupom_repo: ICupomRepository, relogio: Relogio = agora_utc):
        self.cupom_repo = cupom_repo
        self.relogio = relogio

    def executar(self, codigo: str, subtotal: Decimal, agora: Optional[datetime] = None) -> ResultadoValidacaoCupom:
        agora = agora or self.relogio()
        cupom = self.cupom_repo.buscar_por_codigo(codigo.strip()) if codigo and codigo.strip() else None
        motivo = motivo_invalidade(cupom, para_decimal(subtotal), agora)
        if motivo:
            return ResultadoValidacaoCupom(cupom=None, motivo=motivo)
        return ResultadoValidacaoCupom(cupom=cupom)


def validar_cupom(cupom: Cupom) -> Cupom:
    """Regras de cadastro do cupom. Retorna uma cópia com código limpo e valores em centavos."""
    codigo = _texto_obrigatorio(cupom.codigo, "codigo")
    if re.search(r"\s", codigo):
        raise DadosInvalidosError("O código do cupom não pode conter espaços.")
    if cupom.tipo_desconto not in TipoDesconto.TODOS:
        raise DadosInvalidosError(f"Tipo de desconto inválido: {cupom.tipo_desconto}.")

    valor = para_decimal(cupom.valor_desconto)
    if valor < ZERO:
        raise DadosInvalidosError("O valor do desconto não pode ser negativo.")
    if cupom.tipo_desconto == TipoDesconto.PERCENTUAL and valor > CEM:
        raise DadosInvalidosError("Desconto percentual deve estar entre 0 e 100.")

    if cupom.limite_uso is not None and cupom.limite_uso < 1:
        raise DadosInvalidosError("O limite de uso deve ser de pelo menos 1.")
    if cupom.limite_uso is not None and cupom.vezes_usado > cupom.limite_uso:
        raise DadosInvalidosError(
            f"O limite de uso ({cupom.limite_uso}) é menor que o número de usos já registrados ({cupom.vezes_usado})."
        )

    minimo = cupom.valor_minimo_pedido
    if minimo is not None:
        minimo = para_decimal(minimo)
        if minimo < ZERO:
            raise DadosInvalidosError("O valor mínimo do pedido não pode ser negativo.")
        minimo = quantizar(minimo)

    return replace(cupom, codigo=codigo, valor_desconto=quantizar(valor), valor_minimo_pedido=minimo)


class GerenciarCuponsUseCase:
    """Cadastro de cupons (acesso administrativo). Cupons não são excluídos, apenas desativados."""

    CAMPOS_EDITAVEIS = (
        "codigo", "descricao", "tipo_desconto", "valor_desconto", "ativo",
        "expira_em", "limite_uso", "valor_minimo_pedido",
    )

    def __init__(self, cupom_repo: ICupomRepository, relogio: Relogio = agora_utc):
        self.cupom_repo = cupom_repo
        self.relogio = relogio

    def listar_todos(self) -> List[Cupom]:
        return self.cupom_repo.listar_todos()

    def detalhar(self, cupom_id: str) -> Cupom:
        cupom = self.cupom_repo.buscar_por_id(cupom_id)
        if not cupom:
            raise CupomNaoEncontradoError(f"Cupom ID {cupom_id} não encontrado.")
        return cupom

    def criar(self, cupom: Cupom) -> Cupom:
        agora = self.relogio()
        cupom = validar_cupom(replace(cupom, vezes_usado=0, criado_em=agora, atualizado_em=agora))
        salvo = self.cupom_repo.salvar(cupom)
        logger.info("Cupom %s criado.", salvo.codigo)
        return salvo

    def atualizar(self, cupom_id: str, dados: Dict) -> Cupom:
        cupom = self.detalhar(cupom_id)
        desconhecidos = set(dados) - set(self.CAMPOS_EDITAVEIS)
        if desconhecidos:
            raise DadosInvalidosError(f"Campos não editáveis: {', '.join(sorted(desconhecidos))}.")
        cupom = validar_cupom(replace(cupom, atualizado_em=self.relogio(), **dados))
        return self.cupom_repo.salvar(cupom)


# ====================================================================
# 2. CRIAÇÃO DE PEDIDO (Orquestrador)
# ====================================================================

class CriarPedidoUseCase:
    """
    Coordena a criação do pedido: validação, precificação, cupom e
    persistência atômica (pedido + itens + uso do cupom).
    """
    def __init__(self,
                 pedido_repo: IPedidoRepository,
                 cupom_repo: ICupomRepository,
                 item_cardapio_repo: IItemCardapioRepository,
                 relogio: Relogio = agora_utc,
                 reprecificar: bool = False):

        self.pedido_repo = pedido_repo
        self.cupom_repo = cupom_repo
        self.item_cardapio_repo = item_cardapio_repo
        self.relogio = relogio
        self.reprecificar = reprecificar

    @staticmethod
    def gerar_id_exibicao(agora: datetime) -> str:
        """Código curto para o cliente e a cozinha (ex: 250314-7F3A)."""
        return f"{agora:%y%m%d}-{uuid.uuid4().hex[:4].upper()}"

    def _montar_item(self, dados: DadosItemNovoPedido) -> ItemPedido:
        quantidade = quantidade_inteira(dados.quantidade, dados.nome)

        nome, preco = dados.nome, dados.preco
        if self.reprecificar:
            item_cardapio = self.item_cardapio_repo.buscar_por_id(dados.item_cardapio_id)
            if not item_cardapio:
                raise ItemCardapioNaoEncontradoError(
                    f"Item do cardápio ID {dados.item_cardapio_id} não encontrado."
                )
            nome, preco = item_cardapio.nome, item_cardapio.preco

        preco = para_decimal(preco)
        if preco < ZERO:
            raise DadosInvalidosError(f"Preço negativo para o item '{nome}'.")

        # Snapshot imutável do item no momento do pedido
        return ItemPedido(
            item_cardapio_id=dados.item_cardapio_id,
            nome=_texto_obrigatorio(nome, "nome do item"),
            preco=quantizar(preco),
            quantidade=quantidade,
            observacoes_item=(dados.observacoes_item or "").strip() or None,
        )

    def executar(self, dados: DadosNovoPedido) -> Pedido:
        nome_cliente = _texto_obrigatorio(dados.nome_cliente, "nome_cliente")
        endereco = dados.endereco_formatado()
        if not endereco:
            raise DadosInvalidosError("O endereço de entrega é obrigatório.")
        if not dados.itens:
            raise DadosInvalidosError("O pedido precisa ter pelo menos um item.")
        if dados.tipo_pagamento and dados.tipo_pagamento not in TipoPagamento.TODOS:
            raise DadosInvalidosError(f"Tipo de pagamento inválido: {dados.tipo_pagamento}.")

        agora = self.relogio()
        itens = [self._montar_item(item) for item in dados.itens]
        totais = calcular_totais(itens)

        # 1. Revalida o cupom no momento da submissão
        cupom = None
        if dados.codigo_cupom:
            resultado = ValidarCupomUseCase(self.cupom_repo).executar(dados.codigo_cupom, totais.subtotal, agora)
            if resultado.valido:
                cupom = resultado.cupom
                totais = calcular_totais(itens, cupom.desconto)
            else:
                logger.info("Cupom '%s' não aplicado (%s).", dados.codigo_cupom, resultado.motivo)

        congelados = congelar_totais(totais)

        # 2. Monta a entidade Pedido
        pedido = Pedido(
            nome_cliente=nome_cliente,
            endereco_cliente=endereco,
            valor_total=congelados.total,
            itens=itens,
            status=StatusPedido.PENDENTE,
            status_pagamento=(
                StatusPagamento.PAGO if dados.tipo_pagamento == TipoPagamento.ONLINE else StatusPagamento.PENDENTE
            ),
            tipo_pagamento=dados.tipo_pagamento or None,
            cep_cliente=dados.cep or None,
            ponto_referencia=dados.ponto_referencia or None,
            observacoes=dados.observacoes or None,
            codigo_cupom_aplicado=cupom.codigo if cupom else None,
            desconto_cupom_aplicado=congelados.valor_desconto if cupom else None,
            cupom_id=cupom.id if cupom else None,
            id_exibicao=self.gerar_id_exibicao(agora),
            criado_em=agora,
            atualizado_em=agora,
        )

        # 3. O repositório cria o pedido, os itens e incrementa o cupom ATOMICAMENTE.
        try:
            pedido_final = self.pedido_repo.criar_pedido(pedido)
        except CupomEsgotadoError:
            logger.warning(
                "Cupom %s esgotou durante a criação do pedido %s; registrando sem desconto.",
                pedido.codigo_cupom_aplicado, pedido.id_exibicao,
            )
            sem_desconto = congelar_totais(calcular_totais(itens))
            pedido = replace(
                pedido,
                valor_total=sem_desconto.total,
                codigo_cupom_aplicado=None,
                desconto_cupom_aplicado=None,
                cupom_id=None,
            )
            pedido_final = self.pedido_repo.criar_pedido(pedido)

        logger.info("Pedido %s criado (total %s).", pedido_final.id_exibicao, pedido_final.valor_total)
        return pedido_final


class SimularPedidoUseCase:
    """Gera um pedido fictício com os dois primeiros itens do cardápio (útil para demonstração)."""
    def __init__(self,
                 criar_pedido_uc: CriarPedidoUseCase,
                 item_cardapio_repo: IItemCardapioRepository,
                 cupom_repo: ICupomRepository,
                 relogio: Relogio = agora_utc,
                 aleatorio: Optional[random.Random] = None):
        self.criar_pedido_uc = criar_pedido_uc
        self.item_cardapio_repo = item_cardapio_repo
        self.cupom_repo = cupom_repo
        self.relogio = relogio
        self.aleatorio = aleatorio or random.Random()

    def executar(self) -> Pedido:
        cardapio = self.item_cardapio_repo.listar_todos()[:2]
        if not cardapio:
            raise DadosInvalidosError("Não é possível simular: nenhum item cadastrado no cardápio.")

        itens = [
            DadosItemNovoPedido(
                item_cardapio_id=item.id,
                nome=item.nome,
                preco=item.preco,
                quantidade=2 if indice == 0 else 1,
                observacoes_item="Extra queijo em uma" if indice == 0 else None,
            )
            for indice, item in enumerate(cardapio)
        ]

        # Só tenta cupons sem valor mínimo que ainda estejam válidos.
        agora = self.relogio()
        subtotal = calcular_totais(itens).subtotal
        cupom = next(
            (c for c in self.cupom_repo.listar_todos()
             if c.valor_minimo_pedido is None and motivo_invalidade(c, subtotal, agora) is None),
            None,
        )

        numero = self.aleatorio.randint(1, 999)
        dados = DadosNovoPedido(
            nome_cliente=f"Cliente Simulado {numero}",
            endereco_cliente=f"{numero} Rua da Simulação, Bairro Teste, Cidade Alpha - TS",
            cep="12345000",
            itens=itens,
            tipo_pagamento=self.aleatorio.choice([TipoPagamento.DINHEIRO, TipoPagamento.CARTAO]),
            observacoes="Este é um pedido simulado gerado automaticamente.",
            codigo_cupom=cupom.codigo if cupom else None,
        )
        return self.criar_pedido_uc.executar(dados)


# ====================================================================
# 3. CICLO DE VIDA DO PEDIDO
# ====================================================================

class TransicionarPedidoUseCase:
    """Aplica eventos da máquina de estados a um pedido persistido."""
    def __init__(self,
                 pedido_repo: IPedidoRepository,
                 entregador_repo: IEntregadorRepository,
                 relogio: Relogio = agora_utc):
        self.pedido_repo = pedido_repo
        self.entregador_repo = entregador_repo
        self.relogio = relogio

    def resolver_entregador(self, entregador_id: Optional[str], nome_entregador: Optional[str]):
        """Retorna (nome, id). Um entregador cadastrado tem prioridade sobre o nome livre."""
        if entregador_id:
            entregador = self.entregador_repo.buscar_por_id(entregador_id)
            if not entregador:
                raise EntregadorNaoEncontradoError(f"Entregador ID {entregador_id} não encontrado.")
            if not entregador.ativo:
                raise DadosInvalidosError(f"O entregador {entregador.nome} está inativo.")
            return entregador.nome, entregador.id
        return (nome_entregador or "").strip() or None, None

    def executar(
        self,
        pedido_id: str,
        evento: str,
        rota: Optional[str] = None,
        entregador_id: Optional[str] = None,
        nome_entregador: Optional[str] = None,
    ) -> Pedido:
        pedido = self.pedido_repo.buscar_por_id(pedido_id)
        if not pedido:
            raise PedidoNaoEncontradoError(f"Pedido ID {pedido_id} não encontrado.")

        nome = None
        if evento == EventoPedido.DESPACHAR:
            nome, entregador_id = self.resolver_entregador(entregador_id, nome_entregador)

        atualizado = aplicar_transicao(
            pedido, evento, self.relogio(),
            rota=rota, nome_entregador=nome, entregador_id=entregador_id,
        )
        salvo = self.pedido_repo.salvar(atualizado)
        logger.info("Pedido %s: %s -> %s.", pedido.id_exibicao or pedido.id, pedido.status, salvo.status)
        return salvo

    def atualizar_status(self, pedido_id: str, novo_status: str, **kwargs) -> Pedido:
        """Atalho administrativo: converte o status desejado no evento legal correspondente."""
        pedido = self.pedido_repo.buscar_por_id(pedido_id)
        if not pedido:
            raise PedidoNaoEncontradoError(f"Pedido ID {pedido_id} não encontrado.")
        evento = evento_para(pedido.status, novo_status)
        return self.executar(pedido_id, evento, **kwargs)


class DespacharMultiplosPedidosUseCase:
    """
    Despacha os pedidos de um plano de rota com várias paradas. Cada pedido é
    uma unidade de trabalho independente: falhas são coletadas, nunca desfeitas em bloco.
    """
    def __init__(self, transicionar_uc: TransicionarPedidoUseCase):
        self.transicionar_uc = transicionar_uc

    def executar(
        self,
        plano: PlanoRota,
        entregador_id: Optional[str] = None,
        nome_entregador: Optional[str] = None,
    ) -> ResultadoDespacho:
        nome, entregador_id = self.transicionar_uc.resolver_entregador(entregador_id, nome_entregador)
        if not nome:
            raise DadosInvalidosError("É necessário informar o entregador para despachar os pedidos.")

        resultado = ResultadoDespacho()
        for trecho in plano.trechos:
            for pedido_id in trecho.pedido_ids:
                try:
                    pedido = self.transicionar_uc.executar(
                        pedido_id, EventoPedido.DESPACHAR,
                        rota=trecho.url_mapa, entregador_id=entregador_id, nome_entregador=nome,
                    )
                    resultado.sucessos.append(pedido)
                except BaseErroCore as e:
                    logger.warning("Falha ao despachar pedido %s: %s", pedido_id, e)
                    resultado.falhas.append(FalhaDespacho(pedido_id=pedido_id, motivo=str(e)))
                except Exception as e:
                    logger.exception("Erro inesperado ao despachar pedido %s.", pedido_id)
                    resultado.falhas.append(FalhaDespacho(pedido_id=pedido_id, motivo=str(e)))

        logger.info(
            "Despacho múltiplo para %s: %d sucesso(s), %d falha(s).",
            nome, len(resultado.sucessos), len(resultado.falhas),
        )
        return resultado


# ====================================================================
# 4. CASOS DE USO ADMINISTRATIVOS
# ====================================================================

class GerenciarPedidosAdminUseCase:
    """Caso de Uso para listagem e edição de pedidos (acesso administrativo)."""

    # Status não está aqui: só muda pela máquina de estados.
    CAMPOS_EDITAVEIS = (
        "nome_cliente", "endereco_cliente", "cep_cliente", "ponto_referencia",
        "tipo_pagamento", "status_pagamento", "observacoes", "link_nfe", "valor_total",
    )

    def __init__(self, pedido_repo: IPedidoRepository, relogio: Relogio = agora_utc):
        self.pedido_repo = pedido_repo
        self.relogio = relogio

    def listar_todos(self, status: Optional[str] = None) -> List[Pedido]:
        """Lista todos os pedidos no sistema, com filtro opcional por status."""
        return self.pedido_repo.listar_todos(status)

    def detalhar_pedido(self, pedido_id: str) -> Pedido:
        """Busca os detalhes de um pedido específico."""
        pedido = self.pedido_repo.buscar_por_id(pedido_id)
        if not pedido:
            raise PedidoNaoEncontradoError(f"Pedido ID {pedido_id} não encontrado.")
        return pedido

    def atualizar_detalhes(self, pedido_id: str, dados: Dict) -> Pedido:
        pedido = self.detalhar_pedido(pedido_id)

        desconhecidos = set(dados) - set(self.CAMPOS_EDITAVEIS)
        if desconhecidos:
            raise DadosInvalidosError(f"Campos não editáveis: {', '.join(sorted(desconhecidos))}.")

        alteracoes = dict(dados)
        if "nome_cliente" in alteracoes:
            alteracoes["nome_cliente"] = _texto_obrigatorio(alteracoes["nome_cliente"], "nome_cliente")
        if "endereco_cliente" in alteracoes:
            alteracoes["endereco_cliente"] = _texto_obrigatorio(alteracoes["endereco_cliente"], "endereco_cliente")
        if alteracoes.get("tipo_pagamento") and alteracoes["tipo_pagamento"] not in TipoPagamento.TODOS:
            raise DadosInvalidosError(f"Tipo de pagamento inválido: {alteracoes['tipo_pagamento']}.")
        if "status_pagamento" in alteracoes and alteracoes["status_pagamento"] not in StatusPagamento.TODOS:
            raise DadosInvalidosError(f"Status de pagamento inválido: {alteracoes['status_pagamento']}.")
        if "valor_total" in alteracoes:
            valor = para_decimal(alteracoes["valor_total"])
            if valor < ZERO:
                raise DadosInvalidosError("O valor total não pode ser negativo.")
            alteracoes["valor_total"] = quantizar(valor)
            logger.info("Valor total do pedido %s ajustado manualmente para %s.", pedido_id, alteracoes["valor_total"])

        return self.pedido_repo.salvar(replace(pedido, atualizado_em=self.relogio(), **alteracoes))

    def registrar_pagamento(self, pedido_id: str, tipo_pagamento: Optional[str] = None) -> Pedido:
        """Marca o pedido como pago (ex: pagamento na entrega)."""
        dados = {"status_pagamento": StatusPagamento.PAGO}
        if tipo_pagamento:
            dados["tipo_pagamento"] = tipo_pagamento
        return self.atualizar_detalhes(pedido_id, dados)


class GerenciarCardapioUseCase:
    """Cadastro do cardápio."""

    CAMPOS_EDITAVEIS = ("nome", "preco", "categoria", "descricao", "url_imagem", "em_promocao", "dica_ia")

    def __init__(self, item_cardapio_repo: IItemCardapioRepository, relogio: Relogio = agora_utc):
        self.item_cardapio_repo = item_cardapio_repo
        self.relogio = relogio

    def listar_todos(self) -> List[ItemCardapio]:
        return self.item_cardapio_repo.listar_todos()

    def detalhar(self, item_id: str) -> ItemCardapio:
        item = self.item_cardapio_repo.buscar_por_id(item_id)
        if not item:
            raise ItemCardapioNaoEncontradoError(f"Item do cardápio ID {item_id} não encontrado.")
        return item

    def _validar(self, item: ItemCardapio) -> ItemCardapio:
        preco = para_decimal(item.preco)
        if preco <= ZERO:
            raise DadosInvalidosError("O preço do item deve ser maior que zero.")
        return replace(
            item,
            nome=_texto_obrigatorio(item.nome, "nome"),
            categoria=_texto_obrigatorio(item.categoria, "categoria"),
            preco=quantizar(preco),
        )

    def criar(self, item: ItemCardapio) -> ItemCardapio:
        agora = self.relogio()
        return self.item_cardapio_repo.salvar(self._validar(replace(item, criado_em=agora, atualizado_em=agora)))

    def atualizar(self, item_id: str, dados: Dict) -> ItemCardapio:
        item = self.detalhar(item_id)
        desconhecidos = set(dados) - set(self.CAMPOS_EDITAVEIS)
        if desconhecidos:
            raise DadosInvalidosError(f"Campos não editáveis: {', '.join(sorted(desconhecidos))}.")
        return self.item_cardapio_repo.salvar(self._validar(replace(item, atualizado_em=self.relogio(), **dados)))

    def deletar(self, item_id: str) -> None:
        """Exclusão bloqueada enquanto algum pedido referenciar o item."""
        referencias = self.item_cardapio_repo.contar_referencias(item_id)
        if referencias > 0:
            logger.warning("Exclusão do item %s bloqueada: %d referência(s).", item_id, referencias)
            raise ExclusaoBloqueadaError(
                item_id, referencias,
                f"O item não pode ser excluído pois está presente em {referencias} item(ns) de pedido.",
            )
        if not self.item_cardapio_repo.deletar(item_id):
            raise ItemCardapioNaoEncontradoError(f"Item do cardápio ID {item_id} não encontrado.")


class GerenciarEntregadoresUseCase:
    """Cadastro de entregadores."""

    CAMPOS_EDITAVEIS = ("nome", "detalhes_veiculo", "placa", "ativo")

    def __init__(self,
                 entregador_repo: IEntregadorRepository,
                 pedido_repo: IPedidoRepository,
                 relogio: Relogio = agora_utc):
        self.entregador_repo = entregador_repo
        self.pedido_repo = pedido_repo
        self.relogio = relogio

    def listar_todos(self, apenas_ativos: bool = False) -> List[Entregador]:
        return self.entregador_repo.listar_todos(apenas_ativos)

    def detalhar(self, entregador_id: str) -> Entregador:
        entregador = self.entregador_repo.buscar_por_id(entregador_id)
        if not entregador:
            raise EntregadorNaoEncontradoError(f"Entregador ID {entregador_id} não encontrado.")
        return entregador

    def criar(self, entregador: Entregador) -> Entregador:
        agora = self.relogio()
        entregador = replace(
            entregador, nome=_texto_obrigatorio(entregador.nome, "nome"), criado_em=agora, atualizado_em=agora,
        )
        return self.entregador_repo.salvar(entregador)

    def atualizar(self, entregador_id: str, dados: Dict) -> Entregador:
        entregador = self.detalhar(entregador_id)
        desconhecidos = set(dados) - set(self.CAMPOS_EDITAVEIS)
        if desconhecidos:
            raise DadosInvalidosError(f"Campos não editáveis: {', '.join(sorted(desconhecidos))}.")
        entregador = replace(entregador, atualizado_em=self.relogio(), **dados)
        entregador.nome = _texto_obrigatorio(entregador.nome, "nome")
        return self.entregador_repo.salvar(entregador)

    def deletar(self, entregador_id: str) -> None:
        """Exclusão bloqueada enquanto houver pedido não finalizado com este entregador."""
        ativos = self.pedido_repo.contar_ativos_por_entregador(entregador_id)
        if ativos > 0:
            logger.warning("Exclusão do entregador %s bloqueada: %d pedido(s) ativo(s).", entregador_id, ativos)
            raise ExclusaoBloqueadaError(
                entregador_id, ativos,
                f"O entregador não pode ser excluído pois está associado a {ativos} pedido(s) ativo(s).",
            )
        if not self.entregador_repo.deletar(entregador_id):
            raise EntregadorNaoEncontradoError(f"Entregador ID {entregador_id} não encontrado.")


# ====================================================================
# 5. ROTAS, CEP, DASHBOARD E EXPORTAÇÃO
# ====================================================================

class OtimizarRotaUseCase:
    """Descreve rotas a partir da pizzaria (resultado consultivo, nunca bloqueia o despacho)."""
    def __init__(self, rota_gateway: IRotaGateway, pedido_repo: IPedidoRepository, endereco_pizzaria: str):
        self.rota_gateway = rota_gateway
        self.pedido_repo = pedido_repo
        self.endereco_pizzaria = endereco_pizzaria

    def _buscar(self, pedido_id: str) -> Pedido:
        pedido = self.pedido_repo.buscar_por_id(pedido_id)
        if not pedido:
            raise PedidoNaoEncontradoError(f"Pedido ID {pedido_id} não encontrado.")
        return pedido

    def rota_para_pedido(self, pedido_id: str) -> RotaOtimizada:
        pedido = self._buscar(pedido_id)
        return self.rota_gateway.descrever_rota(self.endereco_pizzaria, pedido.endereco_cliente)

    def planejar(self, pedido_ids: List[str]) -> PlanoRota:
        if not pedido_ids:
            raise DadosInvalidosError("Selecione pelo menos um pedido para planejar a rota.")
        paradas = [ParadaEntrega(pedido_id=p.id, endereco=p.endereco_cliente) for p in map(self._buscar, pedido_ids)]
        return self.rota_gateway.planejar_multiplas_paradas(self.endereco_pizzaria, paradas)


class BuscarEnderecoPorCepUseCase:
    """Consulta consultiva de CEP: nunca valida o endereço digitado pelo cliente."""
    def __init__(self, cep_gateway: ICepGateway):
        self.cep_gateway = cep_gateway

    def executar(self, cep: str) -> Optional[EnderecoCep]:
        cep_limpo = re.sub(r"\D", "", cep or "")
        if len(cep_limpo) != 8:
            logger.info("CEP inválido informado: %r", cep)
            return None
        return self.cep_gateway.buscar_endereco(cep_limpo)


class CalcularAnaliseDashboardUseCase:
    def __init__(self, pedido_repo: IPedidoRepository, fuso: tzinfo, relogio: Relogio = agora_utc):
        self.pedido_repo = pedido_repo
        self.fuso = fuso
        self.relogio = relogio

    def executar(self, inicio: Optional[date] = None, fim: Optional[date] = None) -> AnaliseDashboard:
        """
        Sem período: totais sobre todos os pedidos e receita diária dos últimos 7 dias.
        Com período: datas locais inclusivas [inicio, fim].
        """
        if inicio is None and fim is None:
            hoje = self.relogio().astimezone(self.fuso).date()
            return calcular_analise(self.pedido_repo.listar_todos(), ultimos_dias(hoje), self.fuso)

        if inicio is None or fim is None:
            raise DadosInvalidosError("Informe a data inicial e a data final do período.")
        if inicio > fim:
            raise DadosInvalidosError("A data inicial não pode ser posterior à data final.")

        inicio_dt = datetime.combine(inicio, time.min, tzinfo=self.fuso)
        fim_dt = datetime.combine(fim + timedelta(days=1), time.min, tzinfo=self.fuso)
        pedidos = self.pedido_repo.listar_por_periodo(inicio_dt, fim_dt)
        return calcular_analise(pedidos, dias_do_periodo(inicio, fim), self.fuso)


class ExportarPedidosCsvUseCase:
    def __init__(self, pedido_repo: IPedidoRepository, fuso: tzinfo):
        self.pedido_repo = pedido_repo
        self.fuso = fuso

    def executar(self, status: Optional[str] = None) -> str:
        return exportar_pedidos_csv(self.pedido_repo.listar_todos(status), self.fuso)

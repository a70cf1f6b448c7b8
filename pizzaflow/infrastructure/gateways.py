import logging
import math
from typing import List, Optional, Tuple
from urllib.parse import quote_plus

import requests

# Importa as Portas e Entidades da camada Core
from pizzaflow.core.ports import IRotaGateway, ICepGateway
from pizzaflow.core.entities import EnderecoCep, RotaOtimizada, ParadaEntrega, PlanoRota, TrechoRota

logger = logging.getLogger(__name__)

Coordenadas = Tuple[float, float]


# ====================================================================
# GATEWAYS: Implementações concretas que se comunicam com APIs externas.
# ====================================================================

def url_google_rota(origem: str, destino: str) -> str:
    return (
        "https://www.google.com/maps/dir/?api=1"
        f"&origin={quote_plus(origem)}&destination={quote_plus(destino)}&travelmode=driving"
    )


def url_google_busca(endereco: str) -> str:
    return f"https://www.google.com/maps/search/?api=1&query={quote_plus(endereco)}"


def distancia_km(a: Coordenadas, b: Coordenadas) -> float:
    """Distância em linha reta (haversine), usada só para ordenar as paradas."""
    lat1, lon1, lat2, lon2 = map(math.radians, (a[0], a[1], b[0], b[1]))
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    return 6371 * 2 * math.asin(math.sqrt(h))


class GeoapifyRotaGateway(IRotaGateway):
    """
    Gateway de rotas usando a API da Geoapify (geocodificação + roteamento).
    Resultados são consultivos: qualquer falha cai para URLs do Google Maps
    ou para um plano vazio com um resumo explicativo.
    """

    API_BASE_URL = "https://api.geoapify.com/v1"
    PLANNER_URL = "https://www.geoapify.com/route-planner"
    MAX_PARADAS_POR_TRECHO = 3

    def __init__(self, api_key: Optional[str], timeout: float = 10, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("GEOAPIFY_API_KEY não configurada. Rotas usarão links do Google Maps.")

    # --- MÉTODOS PRIVADOS ---

    def _get(self, caminho: str, params: dict) -> Optional[dict]:
        try:
            response = self.session.get(
                f"{self.API_BASE_URL}/{caminho}",
                params={**params, "apiKey": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error("Erro na chamada à Geoapify (%s): %s", caminho, e)
            return None
        except ValueError as e:
            logger.error("Resposta inválida da Geoapify (%s): %s", caminho, e)
            return None

    def _geocodificar(self, endereco: str) -> Optional[Coordenadas]:
        data = self._get("geocode/search", {"text": endereco, "limit": 1})
        features = (data or {}).get("features") or []
        if not features:
            logger.warning("Endereço não localizado pela Geoapify: %s", endereco)
            return None
        propriedades = features[0].get("properties") or {}
        lat, lon = propriedades.get("lat"), propriedades.get("lon")
        if lat is None or lon is None:
            logger.warning("Geoapify não retornou coordenadas para: %s", endereco)
            return None
        return lat, lon

    @staticmethod
    def _waypoints(pontos: List[Coordenadas]) -> str:
        return "|".join(f"{lat},{lon}" for lat, lon in pontos)

    def _rotear(self, pontos: List[Coordenadas]) -> Optional[dict]:
        data = self._get("routing", {"waypoints": self._waypoints(pontos), "mode": "drive"})
        features = (data or {}).get("features") or []
        if not features or not features[0].get("properties"):
            return None
        return features[0]["properties"]

    def _url_planner(self, pontos: List[Coordenadas]) -> str:
        return f"{self.PLANNER_URL}?waypoints={self._waypoints(pontos)}&mode=drive"

    # --- ROTA SIMPLES ---

    def descrever_rota(self, origem: str, destino: str) -> RotaOtimizada:
        if not self.api_key:
            return RotaOtimizada(url_rota=url_google_rota(origem, destino), descricao="Rota pelo Google Maps.")

        coords_origem = self._geocodificar(origem)
        coords_destino = self._geocodificar(destino)
        if not coords_origem or not coords_destino:
            return RotaOtimizada(
                url_rota=url_google_busca(destino),
                descricao="Não foi possível localizar um dos endereços; exibindo o destino no mapa.",
            )

        pontos = [coords_origem, coords_destino]
        propriedades = self._rotear(pontos)
        if not propriedades:
            return RotaOtimizada(
                url_rota=url_google_rota(self._waypoints([coords_origem]), self._waypoints([coords_destino])),
                descricao="Roteamento indisponível; rota pelo Google Maps.",
            )

        return RotaOtimizada(
            url_rota=self._url_planner(pontos),
            descricao=f"Rota de {origem} até {destino}.",
            distancia_metros=propriedades.get("distance"),
            tempo_segundos=propriedades.get("time"),
        )

    # --- ROTA COM VÁRIAS PARADAS ---

    @staticmethod
    def _ordenar_vizinho_mais_proximo(origem: Coordenadas, paradas: List[Tuple[ParadaEntrega, Coordenadas]]):
        restantes = list(paradas)
        atual = origem
        ordenadas = []
        while restantes:
            proxima = min(restantes, key=lambda p: distancia_km(atual, p[1]))
            restantes.remove(proxima)
            ordenadas.append(proxima)
            atual = proxima[1]
        return ordenadas

    def planejar_multiplas_paradas(self, origem: str, paradas: List[ParadaEntrega]) -> PlanoRota:
        if not paradas:
            return PlanoRota(trechos=[], resumo="Nenhuma parada informada.")
        if not self.api_key:
            return PlanoRota(
                trechos=[],
                resumo="ERRO: A chave da API Geoapify não está configurada no servidor. Não é possível otimizar rotas.",
            )

        coords_origem = self._geocodificar(origem)
        if not coords_origem:
            return PlanoRota(trechos=[], resumo=f"Não foi possível localizar o endereço de partida: {origem}.")

        localizadas, nao_localizadas = [], []
        for parada in paradas:
            coords = self._geocodificar(parada.endereco)
            if coords:
                localizadas.append((parada, coords))
            else:
                nao_localizadas.append(parada)

        ordenadas = self._ordenar_vizinho_mais_proximo(coords_origem, localizadas)
        trechos = []
        for inicio in range(0, len(ordenadas), self.MAX_PARADAS_POR_TRECHO):
            grupo = ordenadas[inicio:inicio + self.MAX_PARADAS_POR_TRECHO]
            pontos = [coords_origem] + [coords for _, coords in grupo]
            propriedades = self._rotear(pontos) or {}
            trechos.append(TrechoRota(
                pedido_ids=[parada.pedido_id for parada, _ in grupo],
                descricao=" -> ".join(parada.endereco for parada, _ in grupo),
                url_mapa=self._url_planner(pontos),
                distancia_metros=propriedades.get("distance"),
                tempo_segundos=propriedades.get("time"),
            ))

        # Paradas não geocodificadas viram trechos individuais com link de busca.
        for parada in nao_localizadas:
            trechos.append(TrechoRota(
                pedido_ids=[parada.pedido_id],
                descricao=f"{parada.endereco} (endereço não localizado automaticamente)",
                url_mapa=url_google_rota(origem, parada.endereco),
            ))

        distancia_total = sum(t.distancia_metros or 0 for t in trechos)
        resumo = f"{len(paradas)} pedido(s) em {len(trechos)} trecho(s)"
        if distancia_total:
            resumo += f", aproximadamente {distancia_total / 1000:.1f} km"
        if nao_localizadas:
            resumo += f". {len(nao_localizadas)} endereço(s) não localizado(s)"
        return PlanoRota(trechos=trechos, resumo=resumo + ".")


class BrasilApiCepGateway(ICepGateway):
    """Consulta de CEP na BrasilAPI (v2). Falhas retornam None."""

    def __init__(self, base_url: str = "https://brasilapi.com.br/api", timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def buscar_endereco(self, cep: str) -> Optional[EnderecoCep]:
        try:
            response = requests.get(f"{self.base_url}/cep/v2/{cep}", timeout=self.timeout)
            if response.status_code == 404:
                logger.info("CEP %s não encontrado na BrasilAPI.", cep)
                return None
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("Erro ao buscar CEP %s na BrasilAPI: %s", cep, e)
            return None

        return EnderecoCep(
            cep=data.get("cep", cep),
            rua=data.get("street") or "",
            bairro=data.get("neighborhood") or "",
            cidade=data.get("city") or "",
            estado=data.get("state") or "",
        )

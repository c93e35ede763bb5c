# main.py
import uvicorn
import logging

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("Iniciando o servidor FastAPI...")
    logger.info("Acesse a API em: http://127.0.0.1:8000")
    logger.info("Documentação da API (Swagger UI): http://127.0.0.1:8000/docs")
    logger.info("APERTAR CTRL+C PARA SAIR DO SERVIÇO...")

    uvicorn.run("checadoc.api.api_main:app", host="0.0.0.0", port=8000, reload=True)
